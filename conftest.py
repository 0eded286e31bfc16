"""
Pytest configuration for Django tests.
"""
import os

# Fallback for runs outside the project root; pyproject.toml sets it too.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront.settings')
