# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class User:
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class UserAddress:
    id: str
    user_id: str
    label: str  # "Home", "Office"...
    first_name: str
    last_name: str
    phone: str
    address_line1: str
    city: str
    region: str
    address_type: str = "home"  # "home" | "work" | "other"
    address_line2: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "CM"
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def recipient(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def full_address(self) -> str:
        parts = [
            self.address_line1,
            self.address_line2,
            self.city,
            self.region,
            self.postal_code,
            self.country,
        ]
        return ", ".join(p for p in parts if p)


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    brand: str
    category: str
    price: int  # FCFA
    stock: int
    image: str
    description: str


@dataclass(frozen=True)
class CartItem:
    id: str  # product id
    name: str
    price: float
    quantity: int
    image: str = ""


@dataclass(frozen=True)
class Brand:
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    is_active: bool = True
    product_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_products(self) -> bool:
        return self.product_count > 0

    def can_be_deleted(self) -> bool:
        return not self.has_products()


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    sku_prefix: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    product_count: int = 0
    child_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_root(self) -> bool:
        return self.parent_id is None

    def has_children(self) -> bool:
        return self.child_count > 0

    def can_be_deleted(self) -> bool:
        return not self.has_children() and self.product_count == 0


@dataclass
class BulkOperationResult(Generic[T]):
    """Outcome of a create/update/delete batch run inside one transaction."""

    success: List[T] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)  # {"data", "error"}
    total_processed: int = 0


@dataclass(frozen=True)
class ListResult(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True)
class Order:
    id: str
    user_id: Optional[str]
    items: List[CartItem]
    subtotal: int
    delivery_cost: int
    tax: int
    total: int
    delivery_method: str  # "standard" | "express" | "pickup"
    city: str
    payment_method: str  # "mobile_money" | "cash_on_delivery"
    transaction_id: Optional[str]
    status: str  # "pending" | "paid"
    created_at: datetime
    address: Optional[str] = None  # delivery address line, older orders have none
