from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

CENTS = Decimal("0.01")
CLEARANCE_PERCENT = 50
LOW_STOCK_LIMIT = 5


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def _split_sizes(raw: Any) -> Tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = [str(p) for p in raw]
    return tuple(p.strip() for p in parts if p and p.strip())


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    discount_percent: int = 0
    stock_quantity: int = 0
    size_options: Tuple[str, ...] = ()
    category: str = ""
    description: str = ""
    color: str = ""
    image_url: Optional[str] = None
    sku: Optional[str] = None
    is_available: bool = True
    date_created: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        discount = int(data.get("discountPercent") or 0)
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            price=to_decimal(data.get("price")),
            discount_percent=max(0, min(100, discount)),
            stock_quantity=max(0, int(data.get("stockQuantity") or 0)),
            size_options=_split_sizes(data.get("sizeOptions")),
            category=data.get("category") or "",
            description=data.get("description") or "",
            color=data.get("productColor") or data.get("color") or "",
            image_url=data.get("imageUrl"),
            sku=data.get("sku"),
            is_available=data.get("isAvailable", True) is not False,
            date_created=data.get("dateCreated"),
        )

    @property
    def effective_price(self) -> Decimal:
        if self.discount_percent <= 0:
            return self.price
        factor = Decimal(1) - Decimal(self.discount_percent) / Decimal(100)
        return (self.price * factor).quantize(CENTS, rounding=ROUND_HALF_UP)

    @property
    def is_on_sale(self) -> bool:
        return self.discount_percent > 0

    @property
    def is_clearance(self) -> bool:
        return self.discount_percent >= CLEARANCE_PERCENT

    @property
    def in_stock(self) -> bool:
        return self.is_available and self.stock_quantity > 0

    @property
    def is_low_stock(self) -> bool:
        return self.in_stock and self.stock_quantity <= LOW_STOCK_LIMIT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "color": self.color,
            "sku": self.sku,
            "image_url": self.image_url,
            "price": str(self.price),
            "effective_price": str(self.effective_price),
            "discount_percent": self.discount_percent,
            "is_on_sale": self.is_on_sale,
            "is_clearance": self.is_clearance,
            "stock_quantity": self.stock_quantity,
            "in_stock": self.in_stock,
            "is_low_stock": self.is_low_stock,
            "size_options": list(self.size_options),
        }


@dataclass(frozen=True)
class CartItem:
    id: int
    product: Product
    quantity: int
    size: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=int(data["id"]),
            product=Product.from_dict(data.get("product") or {}),
            quantity=int(data.get("quantity") or 0),
            size=data.get("size") or data.get("selectedSize"),
        )

    @property
    def line_total(self) -> Decimal:
        return self.product.effective_price * self.quantity

    @property
    def can_increment(self) -> bool:
        return self.quantity < self.product.stock_quantity

    @property
    def can_decrement(self) -> bool:
        return self.quantity > 1


@dataclass(frozen=True)
class CartSnapshot:
    items: Tuple[CartItem, ...] = ()
    total: Decimal = Decimal("0")
    item_count: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CartSnapshot":
        data = data or {}
        items = tuple(CartItem.from_dict(i) for i in data.get("items") or [])
        total = data.get("total")
        return cls(
            items=items,
            total=to_decimal(total) if total is not None else sum((i.line_total for i in items), Decimal("0")),
            item_count=int(data.get("itemCount", len(items))),
        )

    def find(self, item_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def __contains__(self, item_id: object) -> bool:
        return any(i.id == item_id for i in self.items)


@dataclass(frozen=True)
class Review:
    id: int
    rating: int
    comment: str = ""
    author: str = ""
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        user = data.get("user") or {}
        return cls(
            id=int(data.get("id") or 0),
            rating=int(data.get("rating") or 0),
            comment=data.get("comment") or "",
            author=data.get("customerName") or user.get("username") or "",
            created_at=data.get("reviewDate") or data.get("createdAt"),
        )


@dataclass(frozen=True)
class ProductDetail:
    product: Product
    reviews: Tuple[Review, ...] = ()
    average_rating: float = 0.0
    review_count: int = 0
    related_products: Tuple[Product, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductDetail":
        reviews = tuple(Review.from_dict(r) for r in data.get("reviews") or [])
        return cls(
            product=Product.from_dict(data["product"]),
            reviews=reviews,
            average_rating=float(data.get("averageRating") or 0.0),
            review_count=int(data.get("reviewCount", len(reviews))),
            related_products=tuple(Product.from_dict(p) for p in data.get("relatedProducts") or []),
        )


@dataclass(frozen=True)
class UserSummary:
    id: int
    username: str
    role: str = "CUSTOMER"
    verified: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSummary":
        return cls(
            id=int(data.get("id") or 0),
            username=data.get("username") or "",
            role=data.get("role") or "CUSTOMER",
            verified=bool(data.get("emailVerified", data.get("verified", False))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username, "role": self.role, "verified": self.verified}
