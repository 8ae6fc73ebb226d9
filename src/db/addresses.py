# src/db/addresses.py
# saved delivery addresses of an account
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import aiosqlite

from db.database import connect
from db.models import UserAddress
from utils.errors import NotFoundError
from utils.logger import get_logger

_logger = get_logger(__name__)

ADDRESS_TYPES = ("home", "work", "other")

_REQUIRED_FIELDS = {
    "label": "Address name",
    "first_name": "First name",
    "last_name": "Last name",
    "phone": "Phone",
    "address_line1": "Address",
    "city": "City",
    "region": "Region",
}
_OPTIONAL_FIELDS = {"address_type", "address_line2", "postal_code", "country", "is_default"}
_FIELDS = set(_REQUIRED_FIELDS) | _OPTIONAL_FIELDS

_ORDER_BY = "ORDER BY is_default DESC, created_at, rowid"


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _row_to_address(row) -> UserAddress:
    return UserAddress(
        id=row["id"],
        user_id=row["user_id"],
        label=row["label"],
        address_type=row["address_type"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        phone=row["phone"],
        address_line1=row["address_line1"],
        address_line2=row["address_line2"],
        city=row["city"],
        region=row["region"],
        postal_code=row["postal_code"],
        country=row["country"],
        is_default=bool(row["is_default"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _clean(data: Mapping[str, Any], partial: bool) -> Dict[str, Any]:
    """
    Validate address fields and return the column values to write.
    With partial=True only the given fields are checked.
    """
    unknown = set(data) - _FIELDS
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    for name, caption in _REQUIRED_FIELDS.items():
        if partial and name not in data:
            continue
        value = (data.get(name) or "").strip()
        if not value:
            raise ValueError(f"{caption} is required.")
        values[name] = value

    for name in ("address_line2", "postal_code"):
        if name in data:
            values[name] = (data[name] or "").strip() or None

    if "address_type" in data or not partial:
        address_type = data.get("address_type") or "home"
        if address_type not in ADDRESS_TYPES:
            raise ValueError(f"Unknown address type: {address_type}")
        values["address_type"] = address_type
    if "country" in data:
        values["country"] = (data["country"] or "").strip().upper() or "CM"
    if "is_default" in data:
        values["is_default"] = int(bool(data["is_default"]))
    return values


async def _fetch(
    conn: aiosqlite.Connection, address_id: str, user_id: str
) -> Optional[UserAddress]:
    cur = await conn.execute(
        "SELECT * FROM user_addresses WHERE id = ? AND user_id = ?;", (address_id, user_id)
    )
    row = await cur.fetchone()
    await cur.close()
    return _row_to_address(row) if row else None


async def _require(conn: aiosqlite.Connection, address_id: str, user_id: str) -> UserAddress:
    address = await _fetch(conn, address_id, user_id)
    if address is None:
        raise NotFoundError(f"Address {address_id} not found.")
    return address


async def _clear_default(conn: aiosqlite.Connection, user_id: str) -> None:
    await conn.execute(
        "UPDATE user_addresses SET is_default = 0 WHERE user_id = ? AND is_default = 1;",
        (user_id,),
    )


async def _count(conn: aiosqlite.Connection, user_id: str) -> int:
    cur = await conn.execute("SELECT COUNT(*) FROM user_addresses WHERE user_id = ?;", (user_id,))
    total = (await cur.fetchone())[0]
    await cur.close()
    return int(total)


# ---------------------------
# Reads
# ---------------------------


async def get_user_addresses(user_id: str) -> List[UserAddress]:
    """Addresses of a user, the default one first, then oldest first."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT * FROM user_addresses WHERE user_id = ? {_ORDER_BY};", (user_id,)
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_address(r) for r in rows]


async def get_address(address_id: str, user_id: str) -> Optional[UserAddress]:
    async with connect() as conn:
        return await _fetch(conn, address_id, user_id)


async def get_default_address(user_id: str) -> Optional[UserAddress]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT * FROM user_addresses WHERE user_id = ? AND is_default = 1 LIMIT 1;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_address(row) if row else None


# ---------------------------
# Writes
# ---------------------------


async def create_user_address(user_id: str, data: Mapping[str, Any]) -> UserAddress:
    """
    Save a new address. It becomes the default when asked to, or when it is
    the user's first one; any previous default is cleared.
    Raises NotFoundError for an unknown user, ValueError for invalid data.
    """
    values = _clean(data, partial=False)
    async with connect() as conn:
        cur = await conn.execute("SELECT 1 FROM users WHERE id = ?;", (user_id,))
        exists = await cur.fetchone()
        await cur.close()
        if not exists:
            raise NotFoundError(f"User {user_id} not found.")

        if not await _count(conn, user_id):
            values["is_default"] = 1
        if values.get("is_default"):
            await _clear_default(conn, user_id)

        values["id"] = uuid.uuid4().hex
        values["user_id"] = user_id
        values["created_at"] = values["updated_at"] = _now()
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        await conn.execute(
            f"INSERT INTO user_addresses({columns}) VALUES ({marks});", tuple(values.values())
        )
        await conn.commit()
        address = await _require(conn, values["id"], user_id)

    _logger.info(f"Address {address.id} saved for {user_id}")
    return address


async def update_user_address(
    address_id: str, user_id: str, changes: Mapping[str, Any]
) -> UserAddress:
    """
    Change some fields of an address. Setting is_default moves the default
    mark to this address.
    """
    values = _clean(changes, partial=True)
    async with connect() as conn:
        current = await _require(conn, address_id, user_id)
        if not values:
            return current
        if values.get("is_default"):
            await _clear_default(conn, user_id)

        values["updated_at"] = _now()
        assignments = ", ".join(f"{col} = ?" for col in values)
        await conn.execute(
            f"UPDATE user_addresses SET {assignments} WHERE id = ? AND user_id = ?;",
            (*values.values(), address_id, user_id),
        )
        await conn.commit()
        return await _require(conn, address_id, user_id)


async def set_default_address(address_id: str, user_id: str) -> UserAddress:
    async with connect() as conn:
        await _require(conn, address_id, user_id)
        await _clear_default(conn, user_id)
        await conn.execute(
            "UPDATE user_addresses SET is_default = 1, updated_at = ? WHERE id = ?;",
            (_now(), address_id),
        )
        await conn.commit()
        return await _require(conn, address_id, user_id)


async def delete_user_address(address_id: str, user_id: str) -> None:
    """
    Delete an address. When it was the default, the oldest remaining address
    takes over.
    """
    async with connect() as conn:
        address = await _require(conn, address_id, user_id)
        await conn.execute(
            "DELETE FROM user_addresses WHERE id = ? AND user_id = ?;", (address_id, user_id)
        )
        if address.is_default:
            await conn.execute(
                """
                UPDATE user_addresses SET is_default = 1
                WHERE id = (
                    SELECT id FROM user_addresses WHERE user_id = ?
                    ORDER BY created_at, rowid LIMIT 1
                );
                """,
                (user_id,),
            )
        await conn.commit()
    _logger.info(f"Address {address_id} of {user_id} deleted")
