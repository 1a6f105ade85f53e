import os
import sys
import unittest
from datetime import datetime, timezone
from decimal import Decimal

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from sales.models import DiscountKind, OrderStatus, PersistedOrder  # noqa: E402
from sales.receipt import build_receipt, format_discount  # noqa: E402

ORDER_JSON = {
    "id": 12,
    "number": "CMD-0012",
    "total": 81.0,
    "status": "DONE",
    "userName": "Fatima",
    "discount": 10,
    "discountType": 1,
    "dateCreated": "2025-11-03T10:15:00Z",
    "customer": {"id": 7, "name": "Hassan", "code": "C-7", "phoneNumber": "0600"},
    "items": [
        {
            "id": 1,
            "productId": 3,
            "productName": "Olive oil",
            "quantity": 2,
            "price": 50,
            "discount": 10,
            "discountType": 0,
            "comment": "glass bottle",
        },
    ],
}


class FormatDiscountTestCase(unittest.TestCase):
    def test_no_discount(self):
        self.assertIsNone(format_discount(Decimal("0"), DiscountKind.FIXED, "DH"))
        self.assertIsNone(format_discount(Decimal("-1"), DiscountKind.PERCENT, "DH"))

    def test_percent_and_fixed(self):
        self.assertEqual(format_discount(Decimal("10"), DiscountKind.PERCENT, "DH"), "10%")
        self.assertEqual(format_discount(Decimal("12.5"), DiscountKind.PERCENT, "DH"), "12.5%")
        self.assertEqual(format_discount(Decimal("10"), DiscountKind.FIXED, "DH"), "10.00 DH")


class PersistedOrderTestCase(unittest.TestCase):
    def test_from_json(self):
        order = PersistedOrder.from_json(ORDER_JSON)
        self.assertEqual(order.number, "CMD-0012")
        self.assertEqual(order.total, Decimal("81.0"))
        self.assertIs(order.discount_kind, DiscountKind.PERCENT)
        self.assertEqual(
            order.date_created, datetime(2025, 11, 3, 10, 15, tzinfo=timezone.utc)
        )
        self.assertEqual(order.customer.phone, "0600")
        self.assertEqual(order.items[0].product_name, "Olive oil")
        self.assertIs(order.items[0].discount_kind, DiscountKind.FIXED)
        self.assertFalse(order.is_pending)

    def test_pending_status(self):
        order = PersistedOrder.from_json(
            {**ORDER_JSON, "status": OrderStatus.PENDING.value}
        )
        self.assertTrue(order.is_pending)


class BuildReceiptTestCase(unittest.TestCase):
    def test_lines_and_totals(self):
        doc = build_receipt(PersistedOrder.from_json(ORDER_JSON), shop_name="SHOP")
        self.assertEqual(doc.shop_name, "SHOP")
        self.assertEqual(doc.order_number, "CMD-0012")
        self.assertEqual(doc.cashier_name, "Fatima")
        self.assertEqual(doc.timestamp_display, "2025-11-03 10:15")

        line = doc.lines[0]
        self.assertEqual(line.gross, Decimal("100"))
        # fixed discount is taken once per line
        self.assertEqual(line.line_total, Decimal("90"))
        self.assertEqual(line.discount_display, "10.00 DH")
        self.assertEqual(line.comment, "glass bottle")

        self.assertEqual(doc.subtotal, Decimal("90"))
        self.assertEqual(doc.order_discount_display, "10%")
        self.assertEqual(doc.recomputed_total, Decimal("81"))
        self.assertTrue(doc.is_consistent)
        self.assertEqual(doc.customer.code, "C-7")

    def test_server_total_wins(self):
        doc = build_receipt(PersistedOrder.from_json({**ORDER_JSON, "total": 80}))
        self.assertEqual(doc.grand_total, Decimal("80"))
        self.assertFalse(doc.is_consistent)

    def test_missing_customer_and_date(self):
        data = {**ORDER_JSON, "customer": None, "dateCreated": None, "items": []}
        doc = build_receipt(PersistedOrder.from_json(data))
        self.assertIsNone(doc.customer)
        self.assertEqual(doc.timestamp_display, "-")
        self.assertEqual(doc.lines, ())
        self.assertEqual(doc.subtotal, Decimal("0"))
        self.assertEqual(doc.money(Decimal("3")), "3.00 DH")


if __name__ == "__main__":
    unittest.main()
