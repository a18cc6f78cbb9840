from __future__ import annotations

import math
from typing import Optional, Tuple

from anviboutique.storefront.models import Product

MAX_STARS = 5


def star_partition(rating: float) -> Tuple[int, int, int]:
    """Split a 0..5 rating into (full, half, empty) stars."""
    rating = max(0.0, min(float(rating or 0), float(MAX_STARS)))
    full = int(math.floor(rating))
    half = 1 if full < MAX_STARS and rating - full >= 0.5 else 0
    return full, half, MAX_STARS - full - half


def sale_badge(product: Product) -> Optional[Tuple[str, int]]:
    if not product.is_on_sale:
        return None
    kind = "clearance" if product.is_clearance else "sale"
    return kind, product.discount_percent


def stock_message(product: Product) -> str:
    if not product.in_stock:
        return "Out of stock"
    if product.is_low_stock:
        return f"Only {product.stock_quantity} left"
    return "In stock"
