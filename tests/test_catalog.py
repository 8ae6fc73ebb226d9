import unittest
from unittest import mock

import aiosqlite
from db_case import DbTestCase

from db.catalog import BrandRepository, CategoryRepository
from db.products import get_product, search_products
from utils.errors import NotFoundError
from utils.pure import generate_sku_prefix, generate_slug


class GeneratorsTestCase(unittest.TestCase):
    def test_slug(self):
        self.assertEqual(generate_slug("Écouteurs Sans-fil!"), "ecouteurs-sans-fil")
        self.assertEqual(generate_slug("  Apple   Watch "), "apple-watch")
        self.assertEqual(generate_slug("Apple", ["apple", "apple-1"]), "apple-2")

    def test_sku_prefix(self):
        self.assertEqual(generate_sku_prefix("Smartphones"), "SMA")
        self.assertEqual(generate_sku_prefix("5"), "5X")
        self.assertEqual(generate_sku_prefix("Smart Home", ["SMA"]), "SM1")
        self.assertEqual(generate_sku_prefix("Smart Watch", ["SMA", "SM1"]), "SM2")


class BrandRepositoryTestCase(DbTestCase):
    def setUp(self):
        super().setUp()
        self.brands = BrandRepository()

    async def test_reads(self):
        apple = await self.brands.find_by_slug("apple")
        self.assertEqual(apple.id, "brand-apple")
        self.assertEqual(apple.product_count, 2)
        self.assertIsNone(await self.brands.find_by_id("brand-nope"))
        self.assertTrue(await self.brands.exists("brand-hp"))
        self.assertTrue(await self.brands.exists_by_slug("hp"))
        self.assertFalse(await self.brands.exists_by_slug("hp", exclude_id="brand-hp"))
        self.assertEqual(await self.brands.count(), 4)

    async def test_find_many_sort_and_paginate(self):
        page = await self.brands.find_many(sort_by="name", page=1, limit=3)
        self.assertEqual([b.name for b in page.items], ["Anker", "Apple", "HP"])
        self.assertEqual((page.total, page.total_pages), (4, 2))

        page = await self.brands.find_many(sort_by="product_count", sort_order="desc", limit=2)
        self.assertEqual([b.name for b in page.items], ["Apple", "Samsung"])

        with self.assertRaises(ValueError):
            await self.brands.find_many(sort_by="website_url")
        with self.assertRaises(ValueError):
            await self.brands.find_many(colour="red")

    async def test_search(self):
        result = await self.brands.search("charger")
        self.assertEqual([b.name for b in result.items], ["Anker"])

    async def test_create_generates_unique_slug(self):
        brand = await self.brands.create({"name": "Apple"})
        self.assertEqual(brand.slug, "apple-1")
        self.assertTrue(brand.is_active)
        self.assertIsNotNone(brand.created_at)

        with self.assertRaises(ValueError):
            await self.brands.create({"name": "Tecno", "slug": "apple"})
        with self.assertRaises(ValueError):
            await self.brands.create({"name": "  "})
        with self.assertRaises(ValueError):
            await self.brands.create({"name": "Tecno", "country": "CN"})

    async def test_update_and_soft_delete(self):
        hp = await self.brands.update("brand-hp", {"description": "PCs"})
        self.assertEqual(hp.description, "PCs")
        self.assertEqual(hp.slug, "hp")

        hp = await self.brands.soft_delete("brand-hp")
        self.assertFalse(hp.is_active)
        active = await self.brands.find_many(is_active=True)
        self.assertNotIn("brand-hp", [b.id for b in active.items])

        with self.assertRaises(NotFoundError):
            await self.brands.update("brand-nope", {"name": "X"})

    async def test_delete_refuses_brands_with_products(self):
        with self.assertRaises(ValueError):
            await self.brands.delete("brand-apple")
        tecno = await self.brands.create({"name": "Tecno"})
        await self.brands.delete(tecno.id)
        self.assertFalse(await self.brands.exists(tecno.id))

    async def test_bulk_create_collects_failures(self):
        result = await self.brands.create_bulk(
            [{"name": "Tecno"}, {"name": ""}, {"name": "Infinix"}, {"name": "Tecno"}]
        )
        self.assertEqual(result.total_processed, 4)
        self.assertEqual([b.slug for b in result.success], ["tecno", "infinix", "tecno-1"])
        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0]["data"], {"name": ""})
        self.assertEqual(await self.brands.count(), 7)

    async def test_bulk_update_and_delete(self):
        result = await self.brands.update_bulk(
            [("brand-hp", {"is_active": False}), ("brand-nope", {"name": "X"})]
        )
        self.assertEqual([b.id for b in result.success], ["brand-hp"])
        self.assertEqual(len(result.failed), 1)

        tecno = await self.brands.create({"name": "Tecno"})
        result = await self.brands.delete_bulk([tecno.id, "brand-apple"])
        self.assertEqual(result.success, [{"id": tecno.id}])
        self.assertEqual(result.failed[0]["data"], "brand-apple")

    async def test_bulk_create_rolls_back_on_database_error(self):
        # sqlite cannot bind a list, the driver error aborts the whole batch
        with mock.patch("db.catalog._logger"):
            with self.assertRaises(aiosqlite.Error):
                await self.brands.create_bulk(
                    [{"name": "Tecno"}, {"name": "Infinix", "description": [1, 2]}]
                )
        self.assertEqual(await self.brands.count(), 4)
        self.assertIsNone(await self.brands.find_by_slug("tecno"))

    async def test_bulk_update_rolls_back_on_database_error(self):
        with mock.patch("db.catalog._logger"):
            with self.assertRaises(aiosqlite.Error):
                await self.brands.update_bulk(
                    [
                        ("brand-hp", {"description": "PCs"}),
                        ("brand-anker", {"description": {"bad": "value"}}),
                    ]
                )
        hp = await self.brands.find_by_id("brand-hp")
        self.assertEqual(hp.description, "Laptops and desktops")


class CategoryRepositoryTestCase(DbTestCase):
    def setUp(self):
        super().setUp()
        self.categories = CategoryRepository()

    async def test_roots_and_children(self):
        roots = await self.categories.find_roots()
        self.assertEqual(
            [c.id for c in roots],
            ["cat-phones", "cat-computers", "cat-tablets", "cat-accessories"],
        )
        computers = await self.categories.find_by_id("cat-computers")
        self.assertTrue(computers.is_root())
        self.assertTrue(computers.has_children())
        children = await self.categories.find_by_parent("cat-computers")
        self.assertEqual([c.id for c in children], ["cat-laptops"])

        listed = await self.categories.find_many(parent_id="cat-computers")
        self.assertEqual(listed.total, 1)

    async def test_sku_prefixes(self):
        created = await self.categories.create({"name": "Smart Home"})
        self.assertEqual(created.sku_prefix, "SM1")
        self.assertTrue(await self.categories.exists_by_sku_prefix("sm1"))

        custom = await self.categories.create({"name": "Drones", "sku_prefix": "dr"})
        self.assertEqual(custom.sku_prefix, "DR")
        with self.assertRaises(ValueError):
            await self.categories.create({"name": "Drones 2", "sku_prefix": "TAB"})

    async def test_hierarchy_and_move(self):
        gaming = await self.categories.create(
            {"name": "Gaming Laptops", "parent_id": "cat-laptops"}
        )
        self.assertEqual(
            [c.id for c in await self.categories.get_ancestors(gaming.id)],
            ["cat-computers", "cat-laptops"],
        )
        self.assertEqual(
            [c.id for c in await self.categories.get_descendants("cat-computers")],
            ["cat-laptops", gaming.id],
        )

        moved = await self.categories.move_category(gaming.id, None)
        self.assertTrue(moved.is_root())
        moved = await self.categories.move_category(gaming.id, "cat-computers")
        self.assertEqual(moved.parent_id, "cat-computers")

        # no cycles
        with self.assertRaises(ValueError):
            await self.categories.move_category("cat-computers", "cat-laptops")
        with self.assertRaises(ValueError):
            await self.categories.move_category("cat-computers", "cat-computers")
        with self.assertRaises(NotFoundError):
            await self.categories.move_category("cat-laptops", "cat-nope")
        with self.assertRaises(NotFoundError):
            await self.categories.get_ancestors("cat-nope")

    async def test_delete_constraints(self):
        # has a child category
        with self.assertRaises(ValueError):
            await self.categories.delete("cat-computers")
        # has products
        with self.assertRaises(ValueError):
            await self.categories.delete("cat-phones")

        empty = await self.categories.create({"name": "Drones"})
        await self.categories.delete(empty.id)
        self.assertFalse(await self.categories.exists(empty.id))


class ProductsTestCase(DbTestCase):
    async def test_search_products(self):
        products, total = await search_products("galaxy")
        self.assertEqual(total, 2)
        self.assertEqual([p.name for p in products], ["Galaxy A54 5G", "Galaxy Tab A9"])

        products, total = await search_products("apple", category="Tablettes")
        self.assertEqual([p.id for p in products], ["prod-1004"])

        products, total = await search_products("", page=2, page_size=4)
        self.assertEqual(total, 6)
        self.assertEqual(len(products), 2)

    async def test_get_product(self):
        charger = await get_product("prod-1006")
        self.assertEqual(charger.price, 25000)
        self.assertEqual(charger.brand, "Anker")
        self.assertEqual(charger.category, "Accessoires")
        self.assertIsNone(await get_product("prod-0"))


if __name__ == "__main__":
    unittest.main()
