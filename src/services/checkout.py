"""
Order totals and order storage for checkout.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

import aiosqlite

from db import storage
from db.cart import cart_subtotal, clear_cart
from db.models import CartItem, Order
from utils.errors import StorefrontError
from utils.logger import get_logger
from utils.pure import generate_reference, round_half_up

_logger = get_logger(__name__)

DeliveryMethod = Literal["standard", "express", "pickup"]

DEFAULT_TAX_RATE = 0.1925  # VAT in Cameroon


@dataclass(frozen=True)
class DeliveryZone:
    city: str
    delivery_cost: int
    estimated_time: str
    free_shipping_eligible: bool = False
    min_free_shipping_amount: Optional[int] = None
    tax_rate: float = DEFAULT_TAX_RATE


DELIVERY_ZONES: Dict[str, DeliveryZone] = {
    z.city: z
    for z in (
        DeliveryZone("Yaoundé", 1500, "Same day - 24h", True, 100000),
        DeliveryZone("Douala", 2000, "24h - 48h", True, 150000),
        DeliveryZone("Bafoussam", 3000, "48h - 72h"),
        DeliveryZone("Bamenda", 3000, "48h - 72h"),
        DeliveryZone("Garoua", 5000, "3 - 5 days"),
        DeliveryZone("Maroua", 5000, "3 - 5 days"),
    )
}


@dataclass(frozen=True)
class OrderSummary:
    subtotal: int
    delivery_cost: int
    tax: int
    total: int


def delivery_cost(subtotal: float, city: str, method: DeliveryMethod = "standard") -> int:
    """
    Zone delivery cost. Cities outside the delivery zones and store pickup are
    free, so is a zone order above its free-shipping threshold. Express costs
    twice the standard rate.
    """
    zone = DELIVERY_ZONES.get(city)
    if zone is None or method == "pickup":
        return 0
    if zone.free_shipping_eligible and (
        not zone.min_free_shipping_amount or subtotal >= zone.min_free_shipping_amount
    ):
        return 0
    return zone.delivery_cost * (2 if method == "express" else 1)


def tax(subtotal: float, city: str) -> int:
    zone = DELIVERY_ZONES.get(city)
    if zone is None:
        return 0
    return round_half_up(subtotal * (zone.tax_rate or DEFAULT_TAX_RATE))


def summarize_order(
    items: List[CartItem], city: str, method: DeliveryMethod = "standard"
) -> OrderSummary:
    subtotal = round_half_up(cart_subtotal(items))
    shipping = delivery_cost(subtotal, city, method)
    vat = tax(subtotal, city)
    return OrderSummary(
        subtotal=subtotal, delivery_cost=shipping, tax=vat, total=subtotal + shipping + vat
    )


# ---------------------------
# Order storage
# ---------------------------


def new_order_id() -> str:
    """Order reference; taken before payment so the gateway can quote it."""
    return generate_reference("XN")


def _order_to_dict(order: Order) -> Dict[str, Any]:
    data = dataclasses.asdict(order)
    data["created_at"] = order.created_at.isoformat()
    return data


def _order_from_dict(data: Dict[str, Any]) -> Order:
    return Order(
        **{
            **data,
            "items": [CartItem(**item) for item in data["items"]],
            "created_at": datetime.fromisoformat(data["created_at"]),
        }
    )


async def _load_orders() -> List[Dict[str, Any]]:
    raw = await storage.get_item(storage.ORDERS_STORAGE_KEY)
    return json.loads(raw) if raw else []


async def place_order(
    user_id: Optional[str],
    items: List[CartItem],
    city: str,
    delivery_method: DeliveryMethod = "standard",
    payment_method: str = "mobile_money",
    transaction_id: Optional[str] = None,
    status: str = "pending",
    order_id: Optional[str] = None,
    address: Optional[str] = None,
) -> Order:
    """
    Save the order and empty the buyer's cart. order_id defaults to a new
    reference; address is the delivery address line, if one was picked.
    Raises StorefrontError if the order could not be stored.
    """
    if not items:
        raise StorefrontError("Your cart is empty.")

    summary = summarize_order(items, city, delivery_method)
    order = Order(
        id=order_id or new_order_id(),
        user_id=user_id,
        items=list(items),
        subtotal=summary.subtotal,
        delivery_cost=summary.delivery_cost,
        tax=summary.tax,
        total=summary.total,
        delivery_method=delivery_method,
        city=city,
        payment_method=payment_method,
        transaction_id=transaction_id,
        status=status,
        created_at=datetime.now(),
        address=address,
    )

    try:
        orders = await _load_orders()
        orders.append(_order_to_dict(order))
        await storage.set_item(
            storage.ORDERS_STORAGE_KEY, json.dumps(orders, ensure_ascii=False)
        )
    except (aiosqlite.Error, ValueError) as e:
        _logger.exception("Error storing order")
        raise StorefrontError(
            "Failed to save your order. Please try again or contact support."
        ) from e

    await clear_cart(user_id)
    _logger.info(f"Order {order.id} placed, total {order.total}")
    return order


async def list_orders(user_id: Optional[str]) -> List[Order]:
    """Orders of user_id (guest orders when None), newest first."""
    orders = [
        _order_from_dict(o)
        for o in reversed(await _load_orders())
        if o.get("user_id") == user_id
    ]
    orders.sort(key=lambda o: o.created_at, reverse=True)
    return orders
