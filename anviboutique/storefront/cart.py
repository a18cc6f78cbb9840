from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Dict, Optional, Protocol, Union

from anviboutique.storefront.errors import BackendError, Outcome
from anviboutique.storefront.models import CartSnapshot, Product

logger = logging.getLogger(__name__)

Confirmation = Union[bool, Callable[[], bool]]

UNEXPECTED_ERROR = "Something went wrong. Please try again."


class ItemState(str, Enum):
    IDLE = "idle"
    UPDATING = "updating"
    ERROR = "error"


class CartApi(Protocol):
    def get(self) -> CartSnapshot: ...

    def add(self, product_id: int, quantity: int) -> None: ...

    def update(self, item_id: int, quantity: int) -> None: ...

    def remove(self, item_id: int) -> None: ...

    def clear(self) -> None: ...


def _confirmed(confirm: Confirmation) -> bool:
    if callable(confirm):
        return bool(confirm())
    return bool(confirm)


class CartReconciler:
    """Applies cart mutations and keeps the local snapshot in step with the server.

    The snapshot is never edited in place: after every successful mutation
    a fresh copy is fetched and swapped in. Each item moves through
    ``idle -> updating -> idle|error``; an item that is already updating
    ignores further requests until the first one settles.
    """

    def __init__(self, api: CartApi, snapshot: Optional[CartSnapshot] = None):
        self.api = api
        self.snapshot = snapshot or CartSnapshot()
        self.states: Dict[int, ItemState] = {}
        self.errors: Dict[int, str] = {}
        self.loaded = snapshot is not None
        self._lock = threading.Lock()
        self._listeners = []

    def on_change(self, listener: Callable[[CartSnapshot], None]) -> None:
        self._listeners.append(listener)

    def state_of(self, item_id: int) -> ItemState:
        return self.states.get(item_id, ItemState.IDLE)

    def can_increment(self, item_id: int) -> bool:
        item = self.snapshot.find(item_id)
        return item is not None and self.state_of(item_id) is not ItemState.UPDATING and item.can_increment

    def can_decrement(self, item_id: int) -> bool:
        item = self.snapshot.find(item_id)
        return item is not None and self.state_of(item_id) is not ItemState.UPDATING and item.can_decrement

    def refresh(self) -> CartSnapshot:
        snapshot = self.api.get()
        self._replace(snapshot)
        return snapshot

    def _replace(self, snapshot: CartSnapshot) -> None:
        with self._lock:
            self.snapshot = snapshot
            self.loaded = True
            # forget state for items that no longer exist
            for item_id in [i for i in self.states if i not in snapshot]:
                self.states.pop(item_id, None)
                self.errors.pop(item_id, None)
        for listener in list(self._listeners):
            listener(snapshot)

    def _claim(self, item_id: int) -> bool:
        with self._lock:
            if self.states.get(item_id) is ItemState.UPDATING:
                return False
            self.states[item_id] = ItemState.UPDATING
            self.errors.pop(item_id, None)
            return True

    def _settle(self, item_id: int, error: Optional[str] = None) -> None:
        with self._lock:
            if error is None:
                self.states[item_id] = ItemState.IDLE
                self.errors.pop(item_id, None)
            else:
                self.states[item_id] = ItemState.ERROR
                self.errors[item_id] = error

    def change_quantity(self, item_id: int, new_quantity: int) -> Outcome:
        if new_quantity < 1:
            return Outcome.rejected("below_minimum", "Quantity must be at least 1")

        item = self.snapshot.find(item_id)
        if item is not None and new_quantity > item.product.stock_quantity:
            return Outcome.rejected(
                "above_stock", f"Only {item.product.stock_quantity} in stock"
            )

        if not self._claim(item_id):
            logger.debug("cart item %s already updating; ignoring", item_id)
            return Outcome.rejected("busy", "This item is still being updated")

        try:
            self.api.update(item_id, new_quantity)
            self.refresh()
        except BackendError as err:
            logger.warning("quantity change for cart item %s failed: %s", item_id, err)
            self._settle(item_id, err.message)
            return Outcome.from_error(err)
        except Exception:
            # the item leaves UPDATING on every path
            self._settle(item_id, UNEXPECTED_ERROR)
            raise

        self._settle(item_id)
        return Outcome.success("Cart updated")

    def increment(self, item_id: int) -> Outcome:
        item = self.snapshot.find(item_id)
        if item is None:
            return Outcome.rejected("not_found", "Cart item not found")
        if not item.can_increment:
            return Outcome.rejected("above_stock", f"Only {item.product.stock_quantity} in stock")
        return self.change_quantity(item_id, item.quantity + 1)

    def decrement(self, item_id: int) -> Outcome:
        item = self.snapshot.find(item_id)
        if item is None:
            return Outcome.rejected("not_found", "Cart item not found")
        if not item.can_decrement:
            return Outcome.rejected("below_minimum", "Quantity must be at least 1")
        return self.change_quantity(item_id, item.quantity - 1)

    def remove_item(self, item_id: int, confirm: Confirmation) -> Outcome:
        if not _confirmed(confirm):
            return Outcome.rejected("unconfirmed", "Item was not removed")

        if not self._claim(item_id):
            return Outcome.rejected("busy", "This item is still being updated")

        try:
            self.api.remove(item_id)
            self.refresh()
        except BackendError as err:
            logger.warning("removing cart item %s failed: %s", item_id, err)
            self._settle(item_id, err.message)
            return Outcome.from_error(err)
        except Exception:
            self._settle(item_id, UNEXPECTED_ERROR)
            raise

        with self._lock:
            self.states.pop(item_id, None)
        return Outcome.success("Item removed from cart")

    def clear(self, confirm: Confirmation) -> Outcome:
        if not _confirmed(confirm):
            return Outcome.rejected("unconfirmed", "Cart was not cleared")
        try:
            self.api.clear()
            self.refresh()
        except BackendError as err:
            logger.warning("clearing cart failed: %s", err)
            return Outcome.from_error(err)
        return Outcome.success("Cart cleared successfully")

    def add(self, product: Product, quantity: int = 1, size: Optional[str] = None) -> Outcome:
        """Add ``quantity`` of ``product`` to the cart.

        A size must be picked when the product offers sizes, but the cart
        endpoint has no size parameter, so ``size`` is only validated here
        and is not sent upstream.
        """
        if not product.in_stock:
            return Outcome.rejected("out_of_stock", "This product is out of stock")
        if quantity < 1:
            return Outcome.rejected("below_minimum", "Quantity must be at least 1")
        if quantity > product.stock_quantity:
            return Outcome.rejected("above_stock", f"Only {product.stock_quantity} in stock")
        if product.size_options and size not in product.size_options:
            return Outcome.rejected("size_required", "Please select a size")

        try:
            self.api.add(product.id, quantity)
            self.refresh()
        except BackendError as err:
            logger.warning("adding product %s to cart failed: %s", product.id, err)
            return Outcome.from_error(err)
        return Outcome.success("Added to cart")
