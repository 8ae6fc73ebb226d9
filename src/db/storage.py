# key/value partitions in the kv_store table, the local storage of the app
from __future__ import annotations

from typing import Optional

import aiosqlite

from db.database import connect

CART_STORAGE_KEY = "xeption_cart"
USER_STORAGE_KEY = "xeption_user"
ORDERS_STORAGE_KEY = "orders"


def user_cart_key(user_id: str) -> str:
    return f"{CART_STORAGE_KEY}_{user_id}"


def cart_key(user_id: Optional[str]) -> str:
    """Cart partition for a signed-in user, or the shared guest partition."""
    return user_cart_key(user_id) if user_id else CART_STORAGE_KEY


# ---------------------------
# Connection-level helpers (caller commits)
# ---------------------------


async def read_key(conn: aiosqlite.Connection, key: str) -> Optional[str]:
    cur = await conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,))
    row = await cur.fetchone()
    await cur.close()
    return row[0] if row else None


async def write_key(conn: aiosqlite.Connection, key: str, value: str) -> None:
    await conn.execute(
        """
        INSERT INTO kv_store(key, value, updated_at) VALUES (?, ?, datetime('now'))
        ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                       updated_at = excluded.updated_at;
        """,
        (key, value),
    )


async def delete_key(conn: aiosqlite.Connection, key: str) -> None:
    await conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))


# ---------------------------
# One-shot operations
# ---------------------------


async def get_item(key: str) -> Optional[str]:
    """Return the stored string for key, or None if absent."""
    async with connect() as conn:
        return await read_key(conn, key)


async def set_item(key: str, value: str) -> None:
    async with connect() as conn:
        await write_key(conn, key, value)
        await conn.commit()


async def remove_item(key: str) -> None:
    async with connect() as conn:
        await delete_key(conn, key)
        await conn.commit()