"""
Masking of buyer PII (phone, email, name, GSTIN) before it reaches the logs.
"""
import re
from typing import Any

_GSTIN_RE = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][A-Z\d]Z[A-Z\d]$")
_PHONE_RE = re.compile(r"^[\d\s\+\-\(\)]+$")

PII_FIELDS = {
    "buyer_name", "buyer_phone", "buyer_email", "buyer_gstin",
    "phone", "email", "gstin", "shipping_address", "billing_address",
}
_PII_KEYS = {field.replace("_", "") for field in PII_FIELDS}


def mask_email(email: str) -> str:
    """Mask email address."""
    if "@" not in email:
        return email
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        masked = "**"
    else:
        masked = local[:2] + "*" * (len(local) - 2)
    return f"{masked}@{domain}"


def mask_phone(phone: str) -> str:
    """Keep the last four digits of a phone number."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_name(name: str) -> str:
    """Mask name."""
    if len(name) <= 2:
        return "**"
    return name[0] + "*" * (len(name) - 2) + name[-1]


def mask_gstin(gstin: str) -> str:
    """Keep the state code and PAN initial of a GSTIN."""
    return gstin[:3] + "*" * (len(gstin) - 3)


def mask_value(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return "***"
    if not isinstance(value, str) or not value:
        return value
    if "@" in value:
        return mask_email(value)
    if _GSTIN_RE.match(value.upper()):
        return mask_gstin(value)
    if _PHONE_RE.match(value):
        return mask_phone(value)
    return mask_name(value)


def mask_pii_in_dict(data: dict) -> dict:
    """Mask PII in dictionary recursively; keys match in snake_case or camelCase."""
    masked = {}
    for key, value in data.items():
        if key.replace("_", "").lower() in _PII_KEYS:
            masked[key] = mask_value(key, value)
        elif isinstance(value, dict):
            masked[key] = mask_pii_in_dict(value)
        elif isinstance(value, list):
            masked[key] = [mask_pii_in_dict(item) if isinstance(item, dict) else item for item in value]
        else:
            masked[key] = value
    return masked
