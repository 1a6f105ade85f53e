import os
import sys
import tempfile
import unittest
from decimal import Decimal
from unittest import mock

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.config import DEFAULT_PRINTER_VENDOR_IDS, load_settings  # noqa: E402
from utils.pure import format_money, to_decimal, to_int  # noqa: E402


class SettingsTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.missing_env = os.path.join(self.temp_dir.name, "missing.env")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = load_settings(self.missing_env)
        self.assertEqual(settings.api_base_url, "http://localhost:8080")
        self.assertEqual(settings.search_debounce, 0.4)
        self.assertEqual(settings.currency, "DH")
        self.assertEqual(settings.printer_vendor_ids, DEFAULT_PRINTER_VENDOR_IDS)
        self.assertEqual(settings.printer_endpoint, 1)

    def test_environment_overrides(self):
        env = {
            "POS_API_BASE_URL": "https://pos.example.com/",
            "POS_SEARCH_DEBOUNCE": "0.1",
            "POS_CURRENCY": " EUR ",
            "POS_PRINTER_VENDOR_IDS": "0x04b8, 1234, junk",
            "POS_PRINTER_ENDPOINT": "0x02",
            "POS_API_TIMEOUT": "not a number",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = load_settings(self.missing_env)
        self.assertEqual(settings.api_base_url, "https://pos.example.com")
        self.assertEqual(settings.search_debounce, 0.1)
        self.assertEqual(settings.currency, "EUR")
        self.assertEqual(settings.printer_vendor_ids, (0x04B8, 1234))
        self.assertEqual(settings.printer_endpoint, 2)
        self.assertEqual(settings.api_timeout, 10.0)

    def test_env_file_is_read(self):
        env_file = os.path.join(self.temp_dir.name, ".env")
        with open(env_file, "w") as f:
            f.write("POS_SHOP_NAME=CORNER SHOP\n")
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = load_settings(env_file)
        self.assertEqual(settings.shop_name, "CORNER SHOP")


class NumberParsingTestCase(unittest.TestCase):
    def test_to_int(self):
        self.assertEqual(to_int(" 3 "), 3)
        self.assertEqual(to_int(Decimal("4")), 4)
        self.assertEqual(to_int(2.0), 2)
        for bad in ["3.5", "x", None, True, 2.5, Decimal("1.2")]:
            self.assertIsNone(to_int(bad), bad)

    def test_to_decimal(self):
        self.assertEqual(to_decimal("12,5"), Decimal("12.5"))
        self.assertEqual(to_decimal(0.1), Decimal("0.1"))
        for bad in ["", "  ", "abc", "inf", None, False]:
            self.assertIsNone(to_decimal(bad), bad)

    def test_format_money(self):
        self.assertEqual(format_money(Decimal("12.5"), "DH"), "12.50 DH")
        self.assertEqual(format_money(Decimal("0.005"), "DH"), "0.01 DH")
        self.assertEqual(format_money(Decimal("-3"), "DH"), "-3.00 DH")


if __name__ == "__main__":
    unittest.main()
