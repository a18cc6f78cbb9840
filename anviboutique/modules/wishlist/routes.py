from __future__ import annotations

from flask import Blueprint

from anviboutique.app.extensions import backend
from anviboutique.app.common.auth import login_required
from anviboutique.app.common.validation import confirmed
from anviboutique.storefront.services import WishlistService

bp = Blueprint("wishlist", __name__)


def _items(service: WishlistService) -> dict:
    products = service.list()
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


@bp.get("/wishlist")
@login_required
def get_wishlist():
    return _items(WishlistService(backend.client())), 200


@bp.post("/wishlist/<int:product_id>")
@login_required
def add_to_wishlist(product_id: int):
    service = WishlistService(backend.client())
    service.add(product_id)
    return {"message": "Added to wishlist", **_items(service)}, 201


@bp.delete("/wishlist/<int:product_id>")
@login_required
def remove_from_wishlist(product_id: int):
    if not confirmed():
        return {"ok": False, "reason": "unconfirmed", "message": "Item was not removed"}, 428
    service = WishlistService(backend.client())
    service.remove(product_id)
    return {"message": "Removed from wishlist", **_items(service)}, 200
