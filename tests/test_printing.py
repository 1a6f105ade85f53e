import os
import sys
import tempfile
import unittest
import webbrowser

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from printing import escpos  # noqa: E402
from printing.a4 import print_a4, render_a4_html  # noqa: E402
from printing.preview import render_markdown  # noqa: E402
from sales.models import PersistedOrder  # noqa: E402
from sales.receipt import build_receipt  # noqa: E402

ORDER_JSON = {
    "id": 5,
    "number": "CMD-5",
    "total": 45,
    "status": "DONE",
    "userName": "Fatima",
    "discount": 5,
    "discountType": 0,
    "dateCreated": "2025-11-03T10:15:00",
    "customer": {"id": 7, "name": "Hassan & Sons", "code": "C-7"},
    "items": [
        {
            "productId": 3,
            "productName": "Tea <green>",
            "quantity": 1,
            "price": 40,
            "discount": 0,
            "discountType": 0,
            "comment": "a|b",
        },
        {
            "productId": 4,
            "productName": "Mint",
            "quantity": 2,
            "price": 10,
            "discount": 50,
            "discountType": 1,
        },
    ],
}


def receipt():
    return build_receipt(PersistedOrder.from_json(ORDER_JSON), shop_name="BOUMIA")


class PreviewTestCase(unittest.TestCase):
    def test_markdown_content(self):
        md = render_markdown(receipt())
        self.assertIn("### Order Receipt CMD-5", md)
        self.assertIn("Cashier: Fatima", md)
        self.assertIn("Hassan & Sons", md)
        # pipes in notes must not break the table
        self.assertIn("a\\|b", md)
        self.assertIn("-50%", md)
        self.assertIn("**Order Discount:** -5.00 DH", md)
        self.assertIn("**TOTAL:** 45.00 DH", md)


class EscPosTestCase(unittest.TestCase):
    def test_control_codes(self):
        data = escpos.encode_receipt(receipt())
        self.assertTrue(data.startswith(escpos.INIT))
        self.assertTrue(data.endswith(escpos.CUT))
        self.assertIn(escpos.SIZE_DOUBLE_BOTH + b"BOUMIA\n", data)
        self.assertIn(escpos.SIZE_DOUBLE_HEIGHT + b"TOTAL: 45.00 DH\n", data)
        self.assertIn(b"2 x 10.00 DH (Disc: 50%)\n", data)
        self.assertIn(b"Note: a|b\n", data)
        self.assertIn(b"Order Disc: 5.00 DH\n", data)
        self.assertIn(b"\n\n\n" + escpos.CUT, data)

    def test_builder_replaces_unencodable_text(self):
        data = escpos.EscPosBuilder(encoding="ascii").line("thé").build()
        self.assertEqual(data, b"th?\n")


class A4TestCase(unittest.TestCase):
    def test_html_is_escaped(self):
        page = render_a4_html(receipt())
        self.assertIn("Tea &lt;green&gt;", page)
        self.assertIn("Hassan &amp; Sons", page)
        self.assertIn("<title>Order Ticket - CMD-5</title>", page)
        self.assertIn("window.print()", page)
        self.assertIn("width: 100%;", page)

    def test_print_opens_file_uri(self):
        opened = []
        with tempfile.TemporaryDirectory() as tmp:
            ok = print_a4(receipt(), opener=lambda url: opened.append(url) or True, directory=tmp)
            self.assertTrue(ok)
            self.assertTrue(opened[0].startswith("file://"))
            self.assertEqual(len(os.listdir(tmp)), 1)

    def test_blocked_window_is_reported(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertFalse(print_a4(receipt(), opener=lambda url: False, directory=tmp))

            def broken(url):
                raise webbrowser.Error("no browser")

            self.assertFalse(print_a4(receipt(), opener=broken, directory=tmp))

    def test_unwritable_directory(self):
        missing = os.path.join(tempfile.gettempdir(), "does-not-exist", "nested")
        self.assertFalse(print_a4(receipt(), opener=lambda url: True, directory=missing))


if __name__ == "__main__":
    unittest.main()
