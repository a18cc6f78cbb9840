from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from anviboutique.storefront.errors import BackendError
from anviboutique.storefront.filters import FilterState, FilterStore, to_query_params
from anviboutique.storefront.models import Product

logger = logging.getLogger(__name__)

ListProducts = Callable[[FilterState], Sequence[Product]]


@dataclass(frozen=True)
class Ticket:
    seq: int
    state: FilterState


class CatalogFetcher:
    """Loads the product list for the current FilterState.

    Requests are numbered; only the response to the most recently issued
    request may replace the displayed list. A slow answer for an older
    query that lands after a newer one is dropped. On failure the previous
    list stays on screen and ``notice`` explains what went wrong.
    """

    FAILURE_NOTICE = "We couldn't refresh the products. Showing the previous results."

    def __init__(self, list_products: ListProducts):
        self._list_products = list_products
        self._lock = threading.Lock()
        self._issued = 0
        self.products: Tuple[Product, ...] = ()
        self.state: Optional[FilterState] = None
        self.loading = False
        self.notice: Optional[str] = None
        self.last_error: Optional[BackendError] = None
        self._listeners: List[Callable[["CatalogFetcher"], None]] = []
        self._unbind: Optional[Callable[[], None]] = None

    def on_update(self, listener: Callable[["CatalogFetcher"], None]) -> None:
        self._listeners.append(listener)

    def bind(self, store: FilterStore, fetch_now: bool = True) -> None:
        """Re-fetch whenever any field of the store's state changes."""
        if self._unbind is not None:
            self._unbind()
        self._unbind = store.subscribe(self.fetch)
        if fetch_now:
            self.fetch(store.state)

    def unbind(self) -> None:
        if self._unbind is not None:
            self._unbind()
            self._unbind = None

    def begin(self, state: FilterState) -> Ticket:
        with self._lock:
            self._issued += 1
            self.loading = True
            ticket = Ticket(seq=self._issued, state=state)
        logger.debug("catalog request #%d %s", ticket.seq, to_query_params(state))
        return ticket

    def is_current(self, ticket: Ticket) -> bool:
        return ticket.seq == self._issued

    def complete(self, ticket: Ticket, products: Sequence[Product]) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("dropping stale catalog response #%d (latest is #%d)", ticket.seq, self._issued)
                return False
            self.products = tuple(products)
            self.state = ticket.state
            self.loading = False
            self.notice = None
            self.last_error = None
        self._notify()
        return True

    def fail(self, ticket: Ticket, err: BackendError) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("dropping stale catalog failure #%d", ticket.seq)
                return False
            self.loading = False
            self.last_error = err
            self.notice = err.message if err.code == "session_expired" else self.FAILURE_NOTICE
        logger.warning("catalog request #%d failed: %s", ticket.seq, err)
        self._notify()
        return True

    def fetch(self, state: FilterState) -> bool:
        """Issue a request for ``state`` and publish it if still the latest.

        Returns True when this call's result (or failure) was applied.
        """
        ticket = self.begin(state)
        try:
            products = self._list_products(state)
        except BackendError as err:
            return self.fail(ticket, err)
        return self.complete(ticket, products)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
