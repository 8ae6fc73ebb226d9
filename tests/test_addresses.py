import unittest

from db_case import DbTestCase

from db import accounts, addresses
from db import database as db_database
from utils.errors import NotFoundError

NEW_ADDRESS = {
    "label": "Maman",
    "first_name": "Jean",
    "last_name": "Dupont",
    "phone": "+237 699112233",
    "address_line1": "Carrefour Biyem-Assi",
    "city": "Yaoundé",
    "region": "Centre",
}


class AddressesTestCase(DbTestCase):
    async def _defaults(self, user_id="user-1"):
        return [a.id for a in await addresses.get_user_addresses(user_id) if a.is_default]

    async def test_seed_addresses(self):
        saved = await addresses.get_user_addresses("user-1")
        self.assertEqual([a.id for a in saved], ["addr-1", "addr-2"])
        default = await addresses.get_default_address("user-1")
        self.assertEqual(default.city, "Yaoundé")
        self.assertEqual(
            default.full_address, "123 Avenue Kennedy, Quartier Bastos, Yaoundé, Centre, CM"
        )
        self.assertEqual(default.recipient, "Jean Dupont")
        self.assertIsNone(await addresses.get_default_address("user-2"))
        # addresses of another account are invisible
        self.assertIsNone(await addresses.get_address("addr-1", "user-2"))

    async def test_first_address_becomes_default(self):
        address = await addresses.create_user_address("user-2", {**NEW_ADDRESS, "city": "Douala"})
        self.assertTrue(address.is_default)
        self.assertEqual(address.address_type, "home")
        self.assertEqual(address.country, "CM")

        second = await addresses.create_user_address("user-2", NEW_ADDRESS)
        self.assertFalse(second.is_default)
        self.assertEqual(await self._defaults("user-2"), [address.id])

    async def test_new_default_replaces_previous_one(self):
        address = await addresses.create_user_address(
            "user-1", {**NEW_ADDRESS, "is_default": True, "address_type": "other"}
        )
        self.assertEqual(await self._defaults(), [address.id])
        # the default comes first
        self.assertEqual((await addresses.get_user_addresses("user-1"))[0].id, address.id)

    async def test_set_default_and_update(self):
        office = await addresses.set_default_address("addr-2", "user-1")
        self.assertTrue(office.is_default)
        self.assertEqual(await self._defaults(), ["addr-2"])

        home = await addresses.update_user_address(
            "addr-1", "user-1", {"address_line2": "  ", "is_default": True, "phone": "677000000"}
        )
        self.assertIsNone(home.address_line2)
        self.assertEqual(home.phone, "677000000")
        self.assertEqual(await self._defaults(), ["addr-1"])

        with self.assertRaises(NotFoundError):
            await addresses.set_default_address("addr-1", "user-2")
        with self.assertRaises(NotFoundError):
            await addresses.update_user_address("addr-404", "user-1", {"city": "Douala"})

    async def test_validation(self):
        with self.assertRaises(ValueError):
            await addresses.create_user_address("user-1", {**NEW_ADDRESS, "city": " "})
        with self.assertRaises(ValueError):
            await addresses.create_user_address("user-1", {**NEW_ADDRESS, "floor": 3})
        with self.assertRaises(ValueError):
            await addresses.create_user_address("user-1", {**NEW_ADDRESS, "address_type": "boat"})
        with self.assertRaises(ValueError):
            await addresses.update_user_address("addr-1", "user-1", {"label": ""})
        with self.assertRaises(NotFoundError):
            await addresses.create_user_address("user-404", NEW_ADDRESS)
        self.assertEqual(len(await addresses.get_user_addresses("user-1")), 2)

    async def test_deleting_default_promotes_oldest(self):
        extra = await addresses.create_user_address("user-1", NEW_ADDRESS)
        await addresses.delete_user_address("addr-1", "user-1")
        self.assertEqual(await self._defaults(), ["addr-2"])

        await addresses.delete_user_address(extra.id, "user-1")
        self.assertEqual(await self._defaults(), ["addr-2"])
        with self.assertRaises(NotFoundError):
            await addresses.delete_user_address("addr-1", "user-1")

        await addresses.delete_user_address("addr-2", "user-1")
        self.assertEqual(await addresses.get_user_addresses("user-1"), [])
        self.assertIsNone(await addresses.get_default_address("user-1"))

    async def test_addresses_follow_registered_accounts(self):
        user = await accounts.register("Paul", "Biya", "paul@example.com", "secret1")
        self.assertEqual(await addresses.get_user_addresses(user.id), [])
        address = await addresses.create_user_address(user.id, NEW_ADDRESS)
        self.assertEqual((await addresses.get_default_address(user.id)).id, address.id)

    async def test_older_database_gets_the_address_table(self):
        async with db_database.connect() as conn:
            await conn.execute("DROP TABLE user_addresses;")
            await conn.commit()

        db_database._initialized = False
        self.assertEqual(await addresses.get_user_addresses("user-1"), [])
        # existing rows are kept, no second seeding
        self.assertEqual((await accounts.get_user("user-1")).first_name, "Jean")
        await addresses.create_user_address("user-1", NEW_ADDRESS)
        self.assertEqual(len(await addresses.get_user_addresses("user-1")), 1)


if __name__ == "__main__":
    unittest.main()
