"""Typed wrappers around the boutique REST endpoints.

Each service takes the shared ``ApiClient``; none of them hold state of
their own apart from ``AuthService`` opening and closing the session.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from anviboutique.storefront.client import ApiClient
from anviboutique.storefront.errors import BackendError, FormInvalid, SessionExpired
from anviboutique.storefront.filters import FilterState, to_query_params
from anviboutique.storefront.forms import (
    validate_email,
    validate_otp,
    validate_password_change,
    validate_password_reset,
    validate_registration,
)
from anviboutique.storefront.models import CartSnapshot, Product, ProductDetail, UserSummary

logger = logging.getLogger(__name__)


def _require(errors: Dict[str, str]) -> None:
    if errors:
        raise FormInvalid(errors)


def _message(payload: Any, default: str) -> str:
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    if isinstance(payload, str) and payload:
        return payload
    return default


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, username: str, password: str) -> UserSummary:
        errors = {}
        if not (username or "").strip():
            errors["username"] = "Email is required"
        if not password:
            errors["password"] = "Password is required"
        _require(errors)

        try:
            data = self.api.post("/auth/login", json={"username": username.strip(), "password": password})
        except SessionExpired:
            # 401 on the login call means bad credentials, not an expired token
            raise BackendError(
                status_code=401,
                code="invalid_credentials",
                message="Invalid username or password",
            ) from None
        user = UserSummary.from_dict(data.get("user") or {})
        self.api.session.open(data["token"], user.to_dict())
        logger.info("Logged in as %s", user.username)
        return user

    def logout(self) -> None:
        self.api.session.invalidate("logout")

    def me(self) -> UserSummary:
        user = UserSummary.from_dict(self.api.get("/auth/me") or {})
        self.api.session.remember_user(user.to_dict())
        return user

    def register(self, form: Dict[str, Any]) -> str:
        _require(validate_registration(form))
        payload = {
            "firstName": form["firstName"].strip(),
            "lastName": form["lastName"].strip(),
            "username": form["username"].strip(),
            "phoneNumber": form["phoneNumber"].strip(),
            "password": form["password"],
            "confirmPassword": form["confirmPassword"],
            "newsletterOptIn": bool(form.get("newsletterOptIn")),
        }
        data = self.api.post("/auth/register", json=payload)
        return _message(data, "Registration successful! Please check email.")

    def verify_account(self, email: str, otp: str) -> str:
        _require({**validate_email(email), **validate_otp(otp)})
        data = self.api.get("/verify/account", params={"otp": otp.strip(), "email": email.strip()})
        return _message(data, "Account verified. You can now log in.")

    def resend_otp(self, email: str) -> str:
        _require(validate_email(email))
        data = self.api.post("/verify/resend-otp", params={"email": email.strip()})
        return _message(data, "A new code has been sent.")

    def forgot_password(self, email: str) -> str:
        _require(validate_email(email))
        data = self.api.post("/auth/forgot-password", params={"email": email.strip()})
        return _message(data, "OTP sent.")

    def verify_reset_otp(self, email: str, otp: str) -> str:
        _require({**validate_email(email), **validate_otp(otp)})
        data = self.api.post("/auth/verify-reset-otp", params={"otp": otp.strip(), "email": email.strip()})
        return _message(data, "OTP verified.")

    def reset_password(self, email: str, password: str, confirm_password: str) -> str:
        _require({**validate_email(email), **validate_password_reset(password, confirm_password)})
        data = self.api.post(
            "/auth/reset-password",
            params={"email": email.strip(), "password": password, "confirmPassword": confirm_password},
        )
        return _message(data, "Password reset successfully.")


class ProductService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_products(self, state: FilterState) -> List[Product]:
        data = self.api.get("/products", params=to_query_params(state))
        return [Product.from_dict(p) for p in data or []]

    def featured(self) -> List[Product]:
        return [Product.from_dict(p) for p in self.api.get("/products/featured") or []]

    def categories(self) -> List[str]:
        return [str(c) for c in self.api.get("/products/categories") or []]

    def detail(self, product_id: int) -> ProductDetail:
        return ProductDetail.from_dict(self.api.get(f"/products/{int(product_id)}"))


class CartService:
    """Backend cart endpoints; satisfies ``CartApi`` for the reconciler."""

    def __init__(self, api: ApiClient):
        self.api = api

    def get(self) -> CartSnapshot:
        return CartSnapshot.from_dict(self.api.get("/cart"))

    def add(self, product_id: int, quantity: int = 1) -> None:
        self.api.post(f"/cart/add/{int(product_id)}", params={"quantity": int(quantity)})

    def update(self, item_id: int, quantity: int) -> None:
        self.api.put(f"/cart/update/{int(item_id)}", params={"quantity": int(quantity)})

    def remove(self, item_id: int) -> None:
        self.api.delete(f"/cart/remove/{int(item_id)}")

    def clear(self) -> None:
        self.api.delete("/cart/clear")


class WishlistService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[Product]:
        data = self.api.get("/wishlist") or []
        # entries are either products or {"product": {...}} wrappers
        return [Product.from_dict(e.get("product", e)) for e in data]

    def add(self, product_id: int) -> None:
        self.api.post(f"/wishlist/add/{int(product_id)}")

    def remove(self, product_id: int) -> None:
        self.api.delete(f"/wishlist/remove/{int(product_id)}")


class CustomerService:
    PROFILE_FIELDS = ("firstName", "lastName", "phoneNumber", "newsletterOptIn")

    def __init__(self, api: ApiClient):
        self.api = api

    def profile(self) -> Dict[str, Any]:
        return self.api.get("/customer/profile") or {}

    def update_profile(self, data: Dict[str, Any]) -> None:
        errors = {}
        for name, label in (("firstName", "First name"), ("lastName", "Last name")):
            value = (data.get(name) or "").strip()
            if value and not 2 <= len(value) <= 50:
                errors[name] = f"{label} must be between 2 and 50 characters"
        _require(errors)
        self.api.put("/customer/profile", json={k: data[k] for k in self.PROFILE_FIELDS if k in data})

    def change_password(self, current_password: str, new_password: str, confirm_password: str) -> str:
        form = {
            "currentPassword": current_password,
            "newPassword": new_password,
            "confirmPassword": confirm_password,
        }
        _require(validate_password_change(form))
        data = self.api.post("/customer/change-password", json=form)
        return _message(data, "Password changed successfully")

    def request_email_change(self, new_email: str) -> str:
        _require(validate_email(new_email, field="newEmail"))
        data = self.api.post("/customer/request-email-change", json={"newEmail": new_email.strip()})
        return _message(data, "OTP sent to new email address. Please check your inbox.")

    def confirm_email_change(self, new_email: str, otp: str) -> str:
        _require({**validate_email(new_email, field="newEmail"), **validate_otp(otp)})
        data = self.api.post(
            "/customer/confirm-email-change",
            json={"newEmail": new_email.strip(), "otp": otp.strip()},
        )
        # the token was issued for the old address
        self.api.session.invalidate("email_changed")
        return _message(data, "Email changed successfully! Please login again.")


class NewsletterService:
    def __init__(self, api: ApiClient):
        self.api = api

    def subscribe(self, email: str) -> str:
        _require(validate_email(email))
        data = self.api.post("/newsletter/subscribe", json={"email": email.strip()})
        return _message(data, "Thanks for subscribing!")
