import unittest

from db_case import DbTestCase

from db import cart, storage
from db.models import CartItem


def item(item_id, qty, price=1000.0):
    return CartItem(id=item_id, name=f"Product {item_id}", price=price, quantity=qty)


class MergeItemsTestCase(unittest.TestCase):
    def test_overlapping_quantities_are_summed(self):
        merged = cart.merge_items([item("a", 2), item("b", 1)], [item("a", 3), item("c", 4)])
        quantities = {i.id: i.quantity for i in merged}
        self.assertEqual(quantities, {"a": 5, "b": 1, "c": 4})

    def test_user_order_first_then_new_guest_lines(self):
        merged = cart.merge_items([item("b", 1), item("a", 1)], [item("c", 1), item("a", 1)])
        self.assertEqual([i.id for i in merged], ["b", "a", "c"])

    def test_totals(self):
        items = [item("a", 2, 1500), item("b", 1, 25000)]
        self.assertEqual(cart.cart_subtotal(items), 28000)
        self.assertEqual(cart.cart_count(items), 3)
        self.assertEqual(cart.cart_subtotal([]), 0)


class CartTestCase(DbTestCase):
    async def test_add_increments_existing_line(self):
        await cart.add_to_cart(item("prod-1001", 1))
        updated = await cart.add_to_cart(item("prod-1001", 2))
        self.assertEqual(len(updated), 1)
        self.assertEqual(updated[0].quantity, 3)
        self.assertEqual(await cart.load_cart(), updated)

    async def test_add_non_positive_quantity_is_ignored(self):
        await cart.add_to_cart(item("prod-1001", 0))
        self.assertEqual(await cart.load_cart(), [])

    async def test_guest_and_user_carts_are_separate(self):
        await cart.add_to_cart(item("a", 1))
        await cart.add_to_cart(item("b", 2), "user-1")
        self.assertEqual([i.id for i in await cart.load_cart()], ["a"])
        self.assertEqual([i.id for i in await cart.load_cart("user-1")], ["b"])
        self.assertIsNotNone(await storage.get_item("xeption_cart_user-1"))

    async def test_update_quantity_and_remove(self):
        await cart.add_to_cart(item("a", 1), "user-1")
        await cart.add_to_cart(item("b", 1), "user-1")

        updated = await cart.update_cart_item_quantity("a", 4, "user-1")
        self.assertEqual({i.id: i.quantity for i in updated}, {"a": 4, "b": 1})

        # unknown ids change nothing
        self.assertEqual(await cart.update_cart_item_quantity("zzz", 9, "user-1"), updated)

        # 0 removes the line
        updated = await cart.update_cart_item_quantity("a", 0, "user-1")
        self.assertEqual([i.id for i in updated], ["b"])

        updated = await cart.remove_from_cart("b", "user-1")
        self.assertEqual(updated, [])

    async def test_clear_cart(self):
        await cart.add_to_cart(item("a", 1))
        await cart.clear_cart()
        self.assertEqual(await cart.load_cart(), [])
        self.assertIsNone(await storage.get_item(storage.CART_STORAGE_KEY))

    async def test_merge_on_login(self):
        await cart.add_to_cart(item("a", 2), "user-1")
        await cart.add_to_cart(item("a", 1))
        await cart.add_to_cart(item("c", 5))

        await cart.merge_carts_on_login("user-1")

        merged = {i.id: i.quantity for i in await cart.load_cart("user-1")}
        self.assertEqual(merged, {"a": 3, "c": 5})
        # guest partition is dropped
        self.assertIsNone(await storage.get_item(storage.CART_STORAGE_KEY))
        self.assertEqual(await cart.load_cart(), [])

    async def test_merge_with_empty_guest_cart_is_a_no_op(self):
        await cart.add_to_cart(item("a", 2), "user-1")
        await cart.merge_carts_on_login("user-1")
        self.assertEqual(
            [(i.id, i.quantity) for i in await cart.load_cart("user-1")], [("a", 2)]
        )

    async def test_corrupt_storage_reads_as_empty(self):
        await storage.set_item(storage.CART_STORAGE_KEY, "{not json")
        self.assertEqual(await cart.load_cart(), [])

        await storage.set_item(storage.user_cart_key("user-1"), '[{"id": "a"}]')
        self.assertEqual(await cart.load_cart("user-1"), [])


if __name__ == "__main__":
    unittest.main()
