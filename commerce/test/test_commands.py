"""
Tests for management commands.
"""
import json
import tempfile
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase


class CheckGSTRatesCommandTest(SimpleTestCase):
    """Tests for check_gst_rates."""

    def write_table(self, data) -> str:
        tmp = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False, encoding="utf-8")
        with tmp:
            json.dump(data, tmp)
        self.addCleanup(Path(tmp.name).unlink)
        return tmp.name

    def test_bundled_table(self):
        out = StringIO()
        call_command("check_gst_rates", stdout=out)
        output = out.getvalue()
        self.assertIn("28 HSN entries, default rate 18%", output)
        self.assertIn("6211", output)
        self.assertIn("above ₹1000: 12%", output)

    def test_custom_table(self):
        path = self.write_table({"default_rate": 12, "entries": [{"hsn_code": "4901", "rate": 0}]})
        out = StringIO()
        call_command("check_gst_rates", path=path, stdout=out)
        self.assertIn("1 HSN entries, default rate 12%", out.getvalue())

    def test_invalid_slab(self):
        path = self.write_table({"entries": [{"hsn_code": "6109", "rate": 7}]})
        with self.assertRaises(CommandError) as context:
            call_command("check_gst_rates", path=path, stdout=StringIO())
        self.assertIn("not a GST slab", str(context.exception))

    def test_broken_json(self):
        path = self.write_table({})
        Path(path).write_text("{", encoding="utf-8")
        with self.assertRaises(CommandError):
            call_command("check_gst_rates", path=path, stdout=StringIO())

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command("check_gst_rates", path="/nonexistent/gst_rates.json", stdout=StringIO())
