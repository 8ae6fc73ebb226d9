# src/db/products.py
from __future__ import annotations

from typing import List, Optional, Tuple

from db.database import connect
from db.models import Product

_PRODUCT_SELECT = """
    SELECT p.id, p.name, COALESCE(b.name, ''), COALESCE(c.name, ''),
           p.price, p.stock, p.image, p.description
    FROM products p
    LEFT JOIN brands b ON b.id = p.brand_id
    LEFT JOIN categories c ON c.id = p.category_id
"""


def _row_to_product(row) -> Product:
    return Product(
        id=row[0],
        name=row[1],
        brand=row[2],
        category=row[3],
        price=int(row[4]),
        stock=int(row[5]),
        image=row[6],
        description=row[7],
    )


async def get_product(product_id: str) -> Optional[Product]:
    async with connect() as conn:
        cur = await conn.execute(_PRODUCT_SELECT + " WHERE p.id = ?;", (product_id,))
        row = await cur.fetchone()
        await cur.close()
    return _row_to_product(row) if row else None


async def search_products(
    query: str = "",
    category: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> Tuple[List[Product], int]:
    """
    Case-insensitive search over name, description and brand.

    Empty query lists everything. category filters on the category name.
    Returns (products_for_page, total_count), products ordered by name.
    """
    terms = [t for t in (query or "").strip().lower().split() if t]
    where, params = [], []
    for term in terms:
        where.append(
            "(LOWER(p.name) LIKE ? OR LOWER(p.description) LIKE ? OR LOWER(b.name) LIKE ?)"
        )
        params.extend([f"%{term}%"] * 3)
    if category:
        where.append("c.name = ?")
        params.append(category)
    where_sql = (" WHERE " + " AND ".join(where)) if where else ""

    async with connect() as conn:
        cur = await conn.execute(
            "SELECT COUNT(*) FROM products p"
            " LEFT JOIN brands b ON b.id = p.brand_id"
            " LEFT JOIN categories c ON c.id = p.category_id" + where_sql + ";",
            params,
        )
        total = (await cur.fetchone())[0]
        await cur.close()

        offset = max(page - 1, 0) * page_size
        cur = await conn.execute(
            _PRODUCT_SELECT + where_sql + " ORDER BY p.name LIMIT ? OFFSET ?;",
            (*params, page_size, offset),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(r) for r in rows], int(total)
