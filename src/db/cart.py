# src/db/cart.py
from __future__ import annotations

import dataclasses
import json
from typing import Iterable, List, Optional

import aiosqlite

from db import storage
from db.database import connect
from db.models import CartItem
from utils.logger import get_logger

_logger = get_logger(__name__)

# anything a broken partition can raise while being decoded
_STORAGE_ERRORS = (aiosqlite.Error, ValueError, TypeError, KeyError)


def _dump_items(items: Iterable[CartItem]) -> str:
    return json.dumps([dataclasses.asdict(item) for item in items], ensure_ascii=False)


def _parse_items(raw: Optional[str]) -> List[CartItem]:
    if not raw:
        return []
    return [
        CartItem(
            id=str(entry["id"]),
            name=entry["name"],
            price=entry["price"],
            quantity=int(entry["quantity"]),
            image=entry.get("image", ""),
        )
        for entry in json.loads(raw)
    ]


# ---------------------------
# Pure helpers
# ---------------------------


def merge_items(user_items: List[CartItem], guest_items: List[CartItem]) -> List[CartItem]:
    """Union of both carts by item id, quantities added on overlap.

    User lines keep their position; guest-only lines are appended in guest order.
    """
    merged = list(user_items)
    positions = {item.id: idx for idx, item in enumerate(merged)}
    for guest_item in guest_items:
        idx = positions.get(guest_item.id)
        if idx is None:
            positions[guest_item.id] = len(merged)
            merged.append(guest_item)
        else:
            merged[idx] = dataclasses.replace(
                merged[idx], quantity=merged[idx].quantity + guest_item.quantity
            )
    return merged


def cart_subtotal(items: Iterable[CartItem]) -> float:
    return sum(item.price * item.quantity for item in items)


def cart_count(items: Iterable[CartItem]) -> int:
    return sum(item.quantity for item in items)


# ---------------------------
# Cart partitions
# ---------------------------


async def load_cart(user_id: Optional[str] = None) -> List[CartItem]:
    """Return the cart of user_id (guest cart when None); [] if storage fails."""
    try:
        return _parse_items(await storage.get_item(storage.cart_key(user_id)))
    except _STORAGE_ERRORS:
        _logger.exception(f"Error loading cart {storage.cart_key(user_id)}")
        return []


async def save_cart(items: List[CartItem], user_id: Optional[str] = None) -> None:
    try:
        await storage.set_item(storage.cart_key(user_id), _dump_items(items))
    except _STORAGE_ERRORS:
        _logger.exception(f"Error saving cart {storage.cart_key(user_id)}")


async def add_to_cart(item: CartItem, user_id: Optional[str] = None) -> List[CartItem]:
    """
    Add item to the cart. If a line with the same id exists its quantity is
    increased by item.quantity. Returns the updated cart.
    """
    cart = await load_cart(user_id)
    if item.quantity <= 0:
        return cart

    for idx, existing in enumerate(cart):
        if existing.id == item.id:
            cart[idx] = dataclasses.replace(
                existing, quantity=existing.quantity + item.quantity
            )
            break
    else:
        cart.append(item)

    await save_cart(cart, user_id)
    return cart


async def update_cart_item_quantity(
    item_id: str, quantity: int, user_id: Optional[str] = None
) -> List[CartItem]:
    """Set the quantity of a line; 0 or less removes it. Unknown ids are ignored."""
    cart = await load_cart(user_id)
    for idx, existing in enumerate(cart):
        if existing.id == item_id:
            if quantity <= 0:
                del cart[idx]
            else:
                cart[idx] = dataclasses.replace(existing, quantity=quantity)
            await save_cart(cart, user_id)
            break
    return cart


async def remove_from_cart(item_id: str, user_id: Optional[str] = None) -> List[CartItem]:
    cart = [item for item in await load_cart(user_id) if item.id != item_id]
    await save_cart(cart, user_id)
    return cart


async def clear_cart(user_id: Optional[str] = None) -> None:
    try:
        await storage.remove_item(storage.cart_key(user_id))
    except aiosqlite.Error:
        _logger.exception(f"Error clearing cart {storage.cart_key(user_id)}")


async def merge_carts_on_login(user_id: str) -> None:
    """
    Fold the guest cart into user_id's cart, then drop the guest partition.

    Read, merge and both writes share one connection and are committed together.
    Nothing happens when the guest cart is empty.
    """
    try:
        async with connect() as conn:
            guest_items = _parse_items(
                await storage.read_key(conn, storage.CART_STORAGE_KEY)
            )
            if not guest_items:
                return

            user_key = storage.user_cart_key(user_id)
            user_items = _parse_items(await storage.read_key(conn, user_key))
            merged = merge_items(user_items, guest_items)

            await storage.write_key(conn, user_key, _dump_items(merged))
            await storage.delete_key(conn, storage.CART_STORAGE_KEY)
            await conn.commit()
        _logger.info(
            f"Merged {len(guest_items)} guest line(s) into cart of {user_id}"
        )
    except _STORAGE_ERRORS:
        _logger.exception(f"Error merging carts for {user_id}")
