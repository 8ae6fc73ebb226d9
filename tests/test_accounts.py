import unittest

from db_case import DbTestCase

from db import accounts, cart, storage
from db.models import CartItem
from utils.errors import AuthError
from utils.state import GlobalState


class AccountsTestCase(DbTestCase):
    async def test_login_with_seed_account(self):
        user = await accounts.login("jean.dupont@example.com", "password123")
        self.assertEqual(user.id, "user-1")
        self.assertEqual(user.full_name, "Jean Dupont")
        self.assertEqual(await accounts.get_current_user(), user)
        self.assertTrue(await accounts.is_authenticated())

    async def test_login_is_case_insensitive_on_email(self):
        user = await accounts.login("Marie.K@Example.com", "password123")
        self.assertEqual(user.id, "user-2")

    async def test_bad_credentials(self):
        with self.assertRaises(AuthError) as ctx:
            await accounts.login("jean.dupont@example.com", "wrong-password")
        self.assertEqual(str(ctx.exception), accounts.INVALID_CREDENTIALS)
        with self.assertRaises(AuthError):
            await accounts.login("nobody@example.com", "password123")
        self.assertIsNone(await accounts.get_current_user())

    async def test_register_then_login(self):
        self.assertTrue(await accounts.email_available("paul@example.com"))
        user = await accounts.register("Paul", "Biya", "paul@example.com", "secret1")
        self.assertEqual(user.id, "user-3")
        self.assertFalse(await accounts.email_available("PAUL@example.com"))
        # registering does not sign the user in
        self.assertIsNone(await accounts.get_current_user())

        logged_in = await accounts.login("paul@example.com", "secret1")
        self.assertEqual(logged_in.id, user.id)

    async def test_register_validation(self):
        with self.assertRaises(AuthError):
            await accounts.register("", "Biya", "paul@example.com", "secret1")
        with self.assertRaises(AuthError):
            await accounts.register("Paul", "Biya", "paul@example.com", "123")
        with self.assertRaises(AuthError):
            await accounts.register("Jean", "Bis", "jean.dupont@example.com", "secret1")

    async def test_logout_and_corrupt_user_record(self):
        await accounts.login("jean.dupont@example.com", "password123")
        await accounts.logout()
        self.assertIsNone(await accounts.get_current_user())

        await storage.set_item(storage.USER_STORAGE_KEY, "not json at all")
        self.assertIsNone(await accounts.get_current_user())
        self.assertIsNone(await storage.get_item(storage.USER_STORAGE_KEY))

    async def test_update_profile(self):
        with self.assertRaises(AuthError):
            await accounts.update_user_profile(phone="+237 600000000")

        await accounts.login("jean.dupont@example.com", "password123")
        updated = await accounts.update_user_profile(phone="+237 600000000", first_name="Jean-Paul")
        self.assertEqual(updated.first_name, "Jean-Paul")
        self.assertEqual((await accounts.get_user("user-1")).phone, "+237 600000000")
        self.assertEqual(await accounts.get_current_user(), updated)

        with self.assertRaises(AuthError):
            await accounts.update_user_profile(email="marie.k@example.com")
        with self.assertRaises(ValueError):
            await accounts.update_user_profile(id="user-99")

    async def test_update_profile_email_is_stripped(self):
        await accounts.login("jean.dupont@example.com", "password123")
        updated = await accounts.update_user_profile(email="  jean.d@example.com  ")
        self.assertEqual(updated.email, "jean.d@example.com")
        self.assertEqual((await accounts.get_user("user-1")).email, "jean.d@example.com")
        self.assertEqual((await accounts.login("jean.d@example.com", "password123")).id, "user-1")

        with self.assertRaises(AuthError):
            await accounts.update_user_profile(email="   ")


class GlobalStateTestCase(DbTestCase):
    async def test_sign_in_merges_guest_cart(self):
        state = GlobalState()
        self.assertTrue(state.is_guest)
        self.assertIsNone(state.user_id)

        await cart.add_to_cart(CartItem("prod-1006", "Chargeur USB-C 65W", 25000, 2))
        await state.sign_in("jean.dupont@example.com", "password123")

        self.assertEqual(state.user_id, "user-1")
        self.assertEqual(
            [(i.id, i.quantity) for i in await cart.load_cart("user-1")], [("prod-1006", 2)]
        )
        self.assertEqual(await cart.load_cart(), [])

    async def test_restore_and_sign_out(self):
        await accounts.login("marie.k@example.com", "password123")
        state = GlobalState()
        self.assertEqual((await state.restore()).id, "user-2")

        await state.sign_out()
        self.assertTrue(state.is_guest)
        self.assertIsNone(await GlobalState().restore())

    async def test_update_profile_keeps_state_in_sync(self):
        state = GlobalState()
        await state.sign_in("marie.k@example.com", "password123")
        user = await state.update_profile(last_name="Kouam-Ngo", phone="677000000")
        self.assertIs(state.user, user)
        self.assertEqual(state.user.full_name, "Marie Kouam-Ngo")
        self.assertEqual((await GlobalState().restore()).phone, "677000000")


if __name__ == "__main__":
    unittest.main()
