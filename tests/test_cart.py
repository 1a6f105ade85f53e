import os
import sys
import unittest
from decimal import Decimal

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from sales.cart import (  # noqa: E402
    Cart,
    LineItem,
    SetComment,
    SetDiscountKind,
    SetDiscountValue,
    SetPrice,
    SetQuantity,
    compute_line_total,
)
from sales.models import DiscountKind, Product  # noqa: E402


def product(pid: int, price: str, editable: bool = False) -> Product:
    return Product(id=pid, name=f"Product {pid}", price=Decimal(price), price_editable=editable)


class CartItemsTestCase(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()
        self.a = product(1, "50")
        self.b = product(2, "20")

    def test_adding_twice_increments_quantity(self):
        self.cart.add_item(self.a)
        self.cart.add_item(self.a)
        self.assertEqual(len(self.cart), 1)
        item = self.cart.get(1)
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.unit_price, Decimal("50"))

    def test_never_two_lines_for_one_product(self):
        for pid in [1, 2, 1, 1, 2, 3]:
            self.cart.add_item(product(pid, "10"))
        self.cart.remove_item(2)
        self.cart.add_item(product(2, "10"))
        ids = [item.product_id for item in self.cart.items]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(self.cart.get(1).quantity, 3)
        self.assertEqual(self.cart.get(2).quantity, 1)

    def test_items_keep_insertion_order(self):
        self.cart.add_item(self.b)
        self.cart.add_item(self.a)
        self.cart.add_item(self.b)
        self.assertEqual([i.product_id for i in self.cart.items], [2, 1])

    def test_remove_missing_item_is_noop(self):
        self.cart.add_item(self.a)
        self.cart.remove_item(99)
        self.assertEqual(len(self.cart), 1)
        self.assertIn(1, self.cart)
        self.assertNotIn(99, self.cart)

    def test_clear_resets_order_discount(self):
        self.cart.add_item(self.a)
        self.cart.set_order_discount("5", DiscountKind.PERCENT)
        self.cart.clear()
        self.assertTrue(self.cart.is_empty)
        self.assertFalse(self.cart)
        self.assertEqual(self.cart.order_discount_value, Decimal("0"))
        self.assertIs(self.cart.order_discount_kind, DiscountKind.FIXED)


class CartUpdateTestCase(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()
        self.cart.add_item(product(1, "50", editable=True))

    def test_set_quantity(self):
        self.assertTrue(self.cart.apply(SetQuantity(1, 4)))
        self.assertEqual(self.cart.get(1).quantity, 4)
        self.assertTrue(self.cart.apply(SetQuantity(1, "6")))
        self.assertEqual(self.cart.get(1).quantity, 6)
        self.assertFalse(self.cart.apply(SetQuantity(1, 6)))

    def test_quantity_zero_removes_line(self):
        self.assertTrue(self.cart.apply(SetQuantity(1, 0)))
        self.assertNotIn(1, self.cart)

    def test_invalid_quantity_is_ignored(self):
        for bad in [-1, "abc", "", None, 1.5, True]:
            self.assertFalse(self.cart.apply(SetQuantity(1, bad)), bad)
        self.assertEqual(self.cart.get(1).quantity, 1)

    def test_set_price_and_discount(self):
        self.assertTrue(self.cart.apply(SetPrice(1, "45,5")))
        self.assertEqual(self.cart.get(1).unit_price, Decimal("45.5"))
        self.assertFalse(self.cart.apply(SetPrice(1, "not a price")))
        self.assertFalse(self.cart.apply(SetPrice(1, "-3")))
        self.assertEqual(self.cart.get(1).unit_price, Decimal("45.5"))

        self.assertTrue(self.cart.apply(SetDiscountValue(1, "10")))
        self.assertTrue(self.cart.apply(SetDiscountKind(1, DiscountKind.PERCENT)))
        self.assertFalse(self.cart.apply(SetDiscountValue(1, "nan")))
        item = self.cart.get(1)
        self.assertEqual(item.discount_value, Decimal("10"))
        self.assertIs(item.discount_kind, DiscountKind.PERCENT)

    def test_comment(self):
        self.assertTrue(self.cart.apply(SetComment(1, "gift wrap")))
        self.assertEqual(self.cart.get(1).comment, "gift wrap")
        self.assertTrue(self.cart.apply(SetComment(1, None)))
        self.assertEqual(self.cart.get(1).comment, "")

    def test_update_for_missing_line(self):
        self.assertFalse(self.cart.apply(SetQuantity(42, 3)))
        self.assertFalse(self.cart.apply(SetPrice(42, "1")))

    def test_can_edit_price_follows_product_flag(self):
        self.cart.add_item(product(2, "10"))
        self.assertTrue(self.cart.can_edit_price(1))
        self.assertFalse(self.cart.can_edit_price(2))
        self.assertFalse(self.cart.can_edit_price(3))


class CartTotalsTestCase(unittest.TestCase):
    def test_percent_100_is_free(self):
        item = LineItem(
            product(1, "37.40"),
            quantity=3,
            unit_price=Decimal("37.40"),
            discount_value=Decimal("100"),
            discount_kind=DiscountKind.PERCENT,
        )
        self.assertEqual(compute_line_total(item), Decimal("0"))

    def test_fixed_discount_is_non_increasing(self):
        totals = []
        for value in ["0", "1", "2.5", "10", "30", "100"]:
            item = LineItem(
                product(1, "20"),
                quantity=2,
                unit_price=Decimal("20"),
                discount_value=Decimal(value),
            )
            totals.append(compute_line_total(item))
        self.assertEqual(totals, sorted(totals, reverse=True))
        # flat per line, not per unit
        self.assertEqual(totals[3], Decimal("30"))

    def test_order_discount_applies_after_line_discounts(self):
        cart = Cart()
        cart.add_item(product(1, "100"))
        cart.apply(SetDiscountValue(1, "10"))
        cart.set_order_discount("10", DiscountKind.PERCENT)
        self.assertEqual(cart.compute_subtotal(), Decimal("90"))
        self.assertEqual(cart.compute_grand_total(), Decimal("81"))

    def test_fixed_order_discount(self):
        cart = Cart()
        cart.add_item(product(1, "20"))
        cart.apply(SetQuantity(1, 3))
        cart.set_order_discount("5", DiscountKind.FIXED)
        self.assertEqual(cart.compute_subtotal(), Decimal("60"))
        self.assertEqual(cart.compute_grand_total(), Decimal("55"))

    def test_subtotal_is_sum_of_lines_and_stable(self):
        cart = Cart()
        cart.add_item(product(1, "12.30"))
        cart.add_item(product(2, "7.05"))
        cart.apply(SetQuantity(2, 3))
        cart.apply(SetDiscountValue(2, "15"))
        cart.apply(SetDiscountKind(2, DiscountKind.PERCENT))
        expected = sum(cart.compute_line_total(i) for i in cart.items)
        self.assertEqual(cart.compute_subtotal(), expected)
        self.assertEqual(cart.compute_subtotal(), cart.compute_subtotal())

    def test_totals_are_not_clamped(self):
        cart = Cart()
        cart.add_item(product(1, "10"))
        cart.apply(SetDiscountValue(1, "25"))
        self.assertEqual(cart.compute_subtotal(), Decimal("-15"))
        cart.set_order_discount("5", DiscountKind.FIXED)
        self.assertEqual(cart.compute_grand_total(), Decimal("-20"))

    def test_invalid_order_discount_is_ignored(self):
        cart = Cart()
        self.assertFalse(cart.set_order_discount("oops", DiscountKind.PERCENT))
        self.assertFalse(cart.set_order_discount("-1", DiscountKind.FIXED))
        self.assertEqual(cart.order_discount_value, Decimal("0"))
        self.assertIs(cart.order_discount_kind, DiscountKind.FIXED)


if __name__ == "__main__":
    unittest.main()
