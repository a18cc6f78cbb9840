import json
import os
import re
import sys
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlsplit

import pytest
from requests import Response, Session
from requests.adapters import BaseAdapter
from requests.exceptions import ConnectionError as RequestsConnectionError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anviboutique.app.config import Config
from anviboutique.app.extensions import backend
from anviboutique.app.factory import create_app
from anviboutique.storefront.client import ApiClient
from anviboutique.storefront.session import SessionContext

BACKEND_URL = "http://backend.test/api"


@dataclass
class Call:
    method: str
    path: str
    params: dict
    headers: dict
    body: object = None


def _product(pid, name, category, price, stock=10, discount=0, sizes="", color="Red"):
    return {
        "id": pid,
        "name": name,
        "category": category,
        "price": price,
        "discountPercent": discount,
        "stockQuantity": stock,
        "sizeOptions": sizes,
        "productColor": color,
        "isAvailable": True,
    }


@dataclass
class FakeBackend(BaseAdapter):
    """In-memory stand-in for the boutique REST API.

    Mounted on a requests.Session, so ApiClient runs unchanged. Routes can
    be overridden per test with ``on(method, pattern, handler)``.
    """

    products: dict = field(default_factory=dict)
    cart: dict = field(default_factory=dict)
    wishlist: list = field(default_factory=list)
    calls: list = field(default_factory=list)
    routes: list = field(default_factory=list)
    valid_token: str = "tok-123"
    down: bool = False

    def __post_init__(self):
        super().__init__()
        for p in (
            _product(1, "Banarasi Silk Saree", "Sarees", 4999, stock=5, discount=10, color="Red"),
            _product(2, "Bridal Lehenga", "Lehengas", 15999, stock=2, discount=50, sizes="S,M,L", color="Pink"),
            _product(3, "Cotton Kurti", "Kurtis", 899, stock=40, color="Blue"),
        ):
            self.products[p["id"]] = p
        self.cart[42] = {"id": 42, "product_id": 1, "quantity": 2}
        self.cart[43] = {"id": 43, "product_id": 3, "quantity": 1}
        self._next_item = 100
        self._install_defaults()

    # --- plumbing ---------------------------------------------------------

    def on(self, method, pattern, handler):
        """Register ``handler(call, *groups) -> (status, body)``; newest wins."""
        self.routes.insert(0, (method, re.compile(pattern), handler))

    def calls_to(self, method, path):
        return [c for c in self.calls if c.method == method and c.path == path]

    def send(self, request, **kwargs):
        if self.down:
            raise RequestsConnectionError("backend down")

        parts = urlsplit(request.url)
        path = parts.path[len("/api"):] if parts.path.startswith("/api") else parts.path
        body = json.loads(request.body) if request.body else None
        call = Call(request.method, path, dict(parse_qsl(parts.query)), dict(request.headers), body)
        self.calls.append(call)

        status, payload = 404, {"error": "Not found"}
        for method, pattern, handler in self.routes:
            m = pattern.fullmatch(path)
            if method == request.method and m:
                status, payload = handler(call, *m.groups())
                break

        resp = Response()
        resp.status_code = status
        resp._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        resp.reason = "OK" if status < 400 else "Error"
        return resp

    def close(self):
        pass

    # --- default behaviour ------------------------------------------------

    def _authorized(self, call):
        return call.headers.get("Authorization") == f"Bearer {self.valid_token}"

    def cart_body(self):
        items = []
        total = 0.0
        for item in self.cart.values():
            product = self.products[item["product_id"]]
            price = product["price"] * (1 - product["discountPercent"] / 100)
            total += price * item["quantity"]
            items.append({"id": item["id"], "product": product, "quantity": item["quantity"]})
        return {"items": items, "total": round(total, 2), "itemCount": len(items)}

    def _install_defaults(self):
        def guarded(fn):
            def handler(call, *groups):
                if not self._authorized(call):
                    return 401, {"error": "Unauthorized"}
                return fn(call, *groups)
            return handler

        def list_products(call):
            items = list(self.products.values())
            if call.params.get("category"):
                items = [p for p in items if p["category"] == call.params["category"]]
            return 200, items

        def detail(call, pid):
            product = self.products.get(int(pid))
            if not product:
                return 404, {"error": "Product not found"}
            return 200, {
                "product": product,
                "reviews": [{"id": 1, "rating": 5, "comment": "Lovely", "customerName": "Asha"}],
                "averageRating": 3.6,
                "reviewCount": 1,
                "relatedProducts": [p for p in self.products.values() if p["id"] != product["id"]][:4],
            }

        def login(call):
            body = call.body or {}
            if body.get("username") == "asha@example.com" and body.get("password") == "Secret@123":
                return 200, {
                    "token": self.valid_token,
                    "user": {"id": 7, "username": "asha@example.com", "role": "CUSTOMER", "emailVerified": True},
                }
            return 401, {"error": "Invalid credentials"}

        def update(call, item_id):
            item = self.cart.get(int(item_id))
            if not item:
                return 404, {"error": "Cart item not found"}
            qty = int(call.params["quantity"])
            if qty > self.products[item["product_id"]]["stockQuantity"]:
                return 400, {"error": "Insufficient stock"}
            item["quantity"] = qty
            return 200, None

        def remove(call, item_id):
            self.cart.pop(int(item_id), None)
            return 200, None

        def clear(call):
            self.cart.clear()
            return 200, None

        def add(call, product_id):
            pid = int(product_id)
            qty = int(call.params.get("quantity", 1))
            for item in self.cart.values():
                if item["product_id"] == pid:
                    item["quantity"] += qty
                    return 200, None
            self._next_item += 1
            self.cart[self._next_item] = {"id": self._next_item, "product_id": pid, "quantity": qty}
            return 200, None

        def wishlist_add(call, product_id):
            pid = int(product_id)
            if pid not in self.wishlist:
                self.wishlist.append(pid)
            return 200, None

        def wishlist_remove(call, product_id):
            if int(product_id) in self.wishlist:
                self.wishlist.remove(int(product_id))
            return 200, None

        self.on("GET", r"/products", list_products)
        self.on("GET", r"/products/featured", lambda call: (200, list(self.products.values())[:2]))
        self.on("GET", r"/products/categories", lambda call: (200, ["Sarees", "Lehengas", "Kurtis"]))
        self.on("GET", r"/products/(\d+)", detail)
        self.on("POST", r"/auth/login", login)
        self.on("POST", r"/auth/register", lambda call: (200, {"message": "Registration successful! Please check email."}))
        self.on("GET", r"/auth/me", guarded(lambda call: (200, {"id": 7, "username": "asha@example.com", "role": "CUSTOMER", "emailVerified": True})))
        self.on("GET", r"/verify/account", lambda call: (200, {"message": "Account verified"}) if call.params.get("otp") == "123456" else (400, {"error": "Invalid OTP"}))
        self.on("GET", r"/cart", guarded(lambda call: (200, self.cart_body())))
        self.on("POST", r"/cart/add/(\d+)", guarded(add))
        self.on("PUT", r"/cart/update/(\d+)", guarded(update))
        self.on("DELETE", r"/cart/remove/(\d+)", guarded(remove))
        self.on("DELETE", r"/cart/clear", guarded(clear))
        self.on("GET", r"/wishlist", guarded(lambda call: (200, [self.products[p] for p in self.wishlist])))
        self.on("POST", r"/wishlist/add/(\d+)", guarded(wishlist_add))
        self.on("DELETE", r"/wishlist/remove/(\d+)", guarded(wishlist_remove))
        self.on("GET", r"/customer/profile", guarded(lambda call: (200, {"firstName": "Asha", "lastName": "Rao", "newsletterOptIn": False})))
        self.on("PUT", r"/customer/profile", guarded(lambda call: (200, None)))
        self.on("POST", r"/customer/change-password", guarded(lambda call: (200, {"message": "Password changed successfully"})))
        self.on("POST", r"/customer/request-email-change", guarded(lambda call: (200, None)))
        self.on("POST", r"/customer/confirm-email-change", guarded(lambda call: (200, None)))
        self.on("POST", r"/newsletter/subscribe", lambda call: (200, {"message": "Subscribed"}))


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def http(fake_backend):
    s = Session()
    s.mount("http://backend.test", fake_backend)
    return s


@pytest.fixture()
def session_ctx():
    return SessionContext({})


@pytest.fixture()
def api(http, session_ctx):
    return ApiClient(BACKEND_URL, session_ctx, http=http)


@pytest.fixture()
def signed_in(api, fake_backend):
    api.session.open(fake_backend.valid_token, {"id": 7, "username": "asha@example.com"})
    return api


class StorefrontTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    BACKEND_API_URL = BACKEND_URL


@pytest.fixture()
def app(fake_backend):
    app = create_app(StorefrontTestConfig)
    with app.app_context():
        backend.http.mount("http://backend.test", fake_backend)
    return app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def logged_in(client):
    r = client.post("/api/auth/login", json={"username": "asha@example.com", "password": "Secret@123"})
    assert r.status_code == 200
    return client
