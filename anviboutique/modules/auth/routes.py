from __future__ import annotations

from flask import Blueprint

from anviboutique.app.extensions import backend
from anviboutique.app.common.auth import login_required
from anviboutique.app.common.validation import get_json, require_fields
from anviboutique.storefront.forms import password_strength, strength_label
from anviboutique.storefront.services import AuthService

bp = Blueprint("auth", __name__)


def _auth() -> AuthService:
    return AuthService(backend.client())


@bp.post("/auth/login")
def login():
    data = get_json()
    user = _auth().login(data.get("username") or "", data.get("password") or "")

    # unverified customers go to the OTP page first
    next_path = "/"
    if backend.client().session.is_admin:
        next_path = "/admin"
    elif not user.verified:
        next_path = f"/verify-otp?email={user.username}"
    return {"user": user.to_dict(), "next": next_path}, 200


@bp.post("/auth/logout")
def logout():
    _auth().logout()
    return {"ok": True}, 200


@bp.get("/auth/me")
@login_required
def me():
    return {"user": _auth().me().to_dict()}, 200


@bp.post("/auth/register")
def register():
    data = get_json()
    message = _auth().register(data)
    email = (data.get("username") or "").strip()
    return {"message": message, "next": f"/verify-otp?email={email}"}, 201


@bp.post("/auth/verify")
def verify_account():
    data = get_json()
    require_fields(data, ["email", "otp"])
    message = _auth().verify_account(data["email"], data["otp"])
    return {"message": message, "next": "/login"}, 200


@bp.post("/auth/resend-otp")
def resend_otp():
    data = get_json()
    require_fields(data, ["email"])
    return {"message": _auth().resend_otp(data["email"])}, 200


@bp.post("/auth/forgot-password")
def forgot_password():
    data = get_json()
    require_fields(data, ["email"])
    return {"message": _auth().forgot_password(data["email"])}, 200


@bp.post("/auth/verify-reset-otp")
def verify_reset_otp():
    data = get_json()
    require_fields(data, ["email", "otp"])
    return {"message": _auth().verify_reset_otp(data["email"], data["otp"])}, 200


@bp.post("/auth/reset-password")
def reset_password():
    data = get_json()
    require_fields(data, ["email", "password", "confirmPassword"])
    message = _auth().reset_password(data["email"], data["password"], data["confirmPassword"])
    return {"message": message, "next": "/login"}, 200


@bp.post("/auth/password-strength")
def strength():
    data = get_json()
    score = password_strength(data.get("password") or "")
    return {"score": score, "label": strength_label(score)}, 200
