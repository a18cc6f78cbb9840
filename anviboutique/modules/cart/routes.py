from __future__ import annotations

from flask import Blueprint

from anviboutique.app.extensions import backend
from anviboutique.app.common.auth import login_required
from anviboutique.app.common.json import outcome_response
from anviboutique.app.common.validation import confirmed, get_int, get_json, require_fields
from anviboutique.storefront.cart import CartReconciler
from anviboutique.storefront.errors import Outcome
from anviboutique.storefront.models import CartSnapshot
from anviboutique.storefront.services import CartService, ProductService

bp = Blueprint("cart", __name__)


def _reconciler() -> CartReconciler:
    return CartReconciler(CartService(backend.client()))


def _cart_response(cart: CartReconciler) -> dict:
    snapshot: CartSnapshot = cart.snapshot
    return {
        "items": [
            {
                "id": i.id,
                "product_id": i.product.id,
                "name": i.product.name,
                "image_url": i.product.image_url,
                "size": i.size,
                "unit_price": str(i.product.effective_price),
                "quantity": i.quantity,
                "stock_quantity": i.product.stock_quantity,
                "line_total": str(i.line_total),
                "can_increment": cart.can_increment(i.id),
                "can_decrement": cart.can_decrement(i.id),
                "state": cart.state_of(i.id).value,
                "error": cart.errors.get(i.id),
            }
            for i in snapshot.items
        ],
        "total": str(snapshot.total),
        "item_count": snapshot.item_count,
    }


@bp.get("/cart")
@login_required
def get_cart():
    cart = _reconciler()
    cart.refresh()
    return _cart_response(cart), 200


@bp.post("/cart/items")
@login_required
def add_to_cart():
    data = get_json()
    require_fields(data, ["product_id"])
    product_id = get_int(data, "product_id")
    quantity = get_int(data, "quantity") if "quantity" in data else 1

    product = ProductService(backend.client()).detail(product_id).product
    cart = _reconciler()
    outcome = cart.add(product, quantity, data.get("size"))
    if not outcome.ok:
        return outcome_response(outcome)
    return outcome_response(outcome, cart=_cart_response(cart))[0], 201


@bp.put("/cart/items/<int:item_id>")
@login_required
def update_cart_item(item_id: int):
    data = get_json()
    require_fields(data, ["quantity"])
    quantity = get_int(data, "quantity")

    cart = _reconciler()
    if quantity < 1:
        # nothing is sent for an out-of-range quantity
        return outcome_response(cart.change_quantity(item_id, quantity))

    # bounds are checked against a fresh snapshot, then re-validated upstream
    cart.refresh()
    outcome = cart.change_quantity(item_id, quantity)
    return outcome_response(outcome, cart=_cart_response(cart))


@bp.delete("/cart/items/<int:item_id>")
@login_required
def delete_cart_item(item_id: int):
    cart = _reconciler()
    outcome = cart.remove_item(item_id, confirm=confirmed())
    if outcome.ok:
        return outcome_response(outcome, cart=_cart_response(cart))
    return outcome_response(outcome)


@bp.delete("/cart")
@login_required
def clear_cart():
    cart = _reconciler()
    outcome: Outcome = cart.clear(confirm=confirmed())
    if outcome.ok:
        return outcome_response(outcome, cart=_cart_response(cart))
    return outcome_response(outcome)
