"""Catalog filter state and its mapping to the address bar query string.

``FilterState`` is immutable; every change produces a new state which the
``FilterStore`` swaps in wholesale before telling its listeners. Only
fields that differ from their default are written to the query string, so
clearing a control removes its parameter instead of leaving ``key=``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from anviboutique.storefront.errors import InvalidFilter

logger = logging.getLogger(__name__)


class SortBy(str, Enum):
    LATEST = "latest"
    OLDEST = "oldest"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"


class Status(str, Enum):
    ANY = ""
    IN_STOCK = "inStock"
    LOW_STOCK = "lowStock"
    ON_SALE = "onSale"
    CLEARANCE = "clearance"


SORT_LABELS = {
    SortBy.LATEST: "Latest Arrivals",
    SortBy.OLDEST: "Oldest First",
    SortBy.PRICE_ASC: "Price: Low to High",
    SortBy.PRICE_DESC: "Price: High to Low",
}

STATUS_LABELS = {
    Status.ANY: "All Products",
    Status.IN_STOCK: "In Stock",
    Status.LOW_STOCK: "Low Stock",
    Status.ON_SALE: "On Sale",
    Status.CLEARANCE: "Clearance (50%+ off)",
}

CATEGORIES = (
    "Sarees", "Lehengas", "Kurtis", "Long Frocks", "Mom & Me",
    "Crop Top – Skirts", "Handlooms", "Casual Frocks",
    "Ready To Wear", "Dupattas", "Kids wear", "Dress Material",
    "Blouses", "Fabrics",
)

COLORS = (
    "Red", "Blue", "Green", "Yellow", "Black", "White",
    "Pink", "Orange", "Purple", "Brown", "Grey", "Multicolor",
)

# attribute name -> query parameter name, in query string order
WIRE_NAMES = {
    "category": "category",
    "sort_by": "sortBy",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "status": "status",
    "color": "color",
    "keyword": "keyword",
}
_ATTR_NAMES = {wire: attr for attr, wire in WIRE_NAMES.items()}


@dataclass(frozen=True)
class FilterState:
    category: str = ""
    sort_by: SortBy = SortBy.LATEST
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    status: Status = Status.ANY
    color: str = ""
    keyword: str = ""

    def __post_init__(self):
        # text fields are stored stripped, the same way a query is parsed
        for name in ("category", "color", "keyword"):
            object.__setattr__(self, name, (getattr(self, name) or "").strip())
        for bound in (self.min_price, self.max_price):
            if bound is not None and bound < 0:
                raise InvalidFilter("Price bounds must be non-negative")
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise InvalidFilter("Minimum price cannot exceed maximum price")

    @property
    def is_filtered(self) -> bool:
        """True when any sidebar filter (not sort or keyword) is active."""
        return bool(
            self.category or self.status is not Status.ANY or self.color
            or self.min_price is not None or self.max_price is not None
        )

    def describe(self) -> List[str]:
        chips = []
        if self.category:
            chips.append(f"Category: {self.category}")
        if self.status is not Status.ANY:
            chips.append(f"Status: {STATUS_LABELS[self.status]}")
        if self.color:
            chips.append(f"Color: {self.color}")
        if self.min_price is not None or self.max_price is not None:
            low = _format_price(self.min_price) if self.min_price is not None else "0"
            high = _format_price(self.max_price) if self.max_price is not None else "∞"
            chips.append(f"Price: ₹{low} - ₹{high}")
        return chips


def _format_price(value: Decimal) -> str:
    return format(value, "f")


def _attr_name(name: str) -> str:
    if name in WIRE_NAMES:
        return name
    if name in _ATTR_NAMES:
        return _ATTR_NAMES[name]
    raise InvalidFilter(f"Unknown filter: {name}")


def _coerce_price(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, bool):
        raise InvalidFilter(f"Invalid price: {value!r}")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidFilter(f"Invalid price: {value!r}")
    if not price.is_finite():
        raise InvalidFilter(f"Invalid price: {value!r}")
    if price < 0:
        raise InvalidFilter("Price bounds must be non-negative")
    return price


def _coerce(attr: str, value: Any) -> Any:
    if attr == "sort_by":
        if value is None or value == "":
            return SortBy.LATEST
        try:
            return SortBy(value)
        except ValueError:
            raise InvalidFilter(f"Unknown sort order: {value!r}")
    if attr == "status":
        try:
            return Status(value or "")
        except ValueError:
            raise InvalidFilter(f"Unknown status: {value!r}")
    if attr in ("min_price", "max_price"):
        return _coerce_price(value)
    return str(value or "").strip()


def set_filter(state: FilterState, name: str, value: Any) -> FilterState:
    """Return ``state`` with the single field ``name`` replaced.

    If a lone price bound would cross the other one, the other bound is
    dropped rather than producing an inconsistent range.
    """
    attr = _attr_name(name)
    new_value = _coerce(attr, value)
    changes: Dict[str, Any] = {attr: new_value}
    if new_value is not None and attr == "min_price":
        if state.max_price is not None and new_value > state.max_price:
            changes["max_price"] = None
    elif new_value is not None and attr == "max_price":
        if state.min_price is not None and new_value < state.min_price:
            changes["min_price"] = None
    return replace(state, **changes)


def set_price_range(state: FilterState, min_price: Any, max_price: Any) -> FilterState:
    low = _coerce_price(min_price)
    high = _coerce_price(max_price)
    return replace(state, min_price=low, max_price=high)


def clear_all() -> FilterState:
    return FilterState()


def to_query_params(state: FilterState) -> Dict[str, str]:
    """Emit one parameter per field that differs from its default."""
    default = FilterState()
    params: Dict[str, str] = {}
    for attr, wire in WIRE_NAMES.items():
        value = getattr(state, attr)
        if value == getattr(default, attr) or value is None or value == "":
            continue
        if isinstance(value, Enum):
            params[wire] = value.value
        elif isinstance(value, Decimal):
            params[wire] = _format_price(value)
        else:
            params[wire] = str(value)
    return params


def parse_query_params(params: Mapping[str, Any]) -> FilterState:
    """Build a FilterState from an address bar query.

    The query is user-editable, so garbage is ignored field by field
    instead of rejecting the whole page.
    """
    values: Dict[str, Any] = {}
    for f in fields(FilterState):
        raw = params.get(WIRE_NAMES[f.name])
        if raw is None:
            continue
        try:
            values[f.name] = _coerce(f.name, raw)
        except InvalidFilter:
            logger.debug("Ignoring bad %s=%r in query", WIRE_NAMES[f.name], raw)

    low, high = values.get("min_price"), values.get("max_price")
    if low is not None and high is not None and low > high:
        values["min_price"], values["max_price"] = high, low
    return FilterState(**values)


def to_query_string(state: FilterState) -> str:
    return urlencode(to_query_params(state))


def parse_query_string(query: str) -> FilterState:
    return parse_query_params(dict(parse_qsl(query.lstrip("?"), keep_blank_values=True)))


Listener = Callable[[FilterState], None]


class FilterStore:
    """Single source of truth for the current catalog query.

    Every update replaces the state wholesale and notifies listeners once;
    a price range change is one update, never two.
    """

    def __init__(self, initial: Optional[FilterState] = None):
        self._state = initial or FilterState()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> FilterState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, change: Callable[[FilterState], FilterState]) -> FilterState:
        # read, compute and swap under one lock; notify outside it
        with self._lock:
            new_state = change(self._state)
            if new_state == self._state:
                return self._state
            self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def replace(self, new_state: FilterState) -> FilterState:
        return self._update(lambda current: new_state)

    def set_filter(self, name: str, value: Any) -> FilterState:
        return self._update(lambda current: set_filter(current, name, value))

    def set_price_range(self, min_price: Any, max_price: Any) -> FilterState:
        return self._update(lambda current: set_price_range(current, min_price, max_price))

    def clear_all(self) -> FilterState:
        return self.replace(clear_all())


class URLSync:
    """Keeps a FilterStore and an address bar query string in step.

    ``on_navigate`` receives the new query string whenever the store
    changes (the host pushes it into its history). ``load`` goes the other
    way for page entry and back/forward navigation.
    """

    def __init__(self, store: FilterStore, on_navigate: Optional[Callable[[str], None]] = None):
        self.store = store
        self.on_navigate = on_navigate
        self.query_string = to_query_string(store.state)
        self._unsubscribe = store.subscribe(self._reflect)

    def _reflect(self, state: FilterState) -> None:
        query = to_query_string(state)
        if query == self.query_string:
            return
        self.query_string = query
        if self.on_navigate is not None:
            self.on_navigate(query)

    def load(self, query: str) -> FilterState:
        return self.store.replace(parse_query_string(query))

    def close(self) -> None:
        self._unsubscribe()
