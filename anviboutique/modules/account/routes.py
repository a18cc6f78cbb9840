from __future__ import annotations

from flask import Blueprint

from anviboutique.app.extensions import backend
from anviboutique.app.common.auth import login_required
from anviboutique.app.common.validation import get_json, require_fields
from anviboutique.storefront.errors import LOGIN_PATH
from anviboutique.storefront.services import CustomerService

bp = Blueprint("account", __name__)


def _customer() -> CustomerService:
    return CustomerService(backend.client())


@bp.get("/account/profile")
@login_required
def get_profile():
    return {"profile": _customer().profile()}, 200


@bp.put("/account/profile")
@login_required
def update_profile():
    data = get_json()
    customer = _customer()
    customer.update_profile(data)
    return {"message": "Profile updated successfully", "profile": customer.profile()}, 200


@bp.post("/account/password")
@login_required
def change_password():
    data = get_json()
    message = _customer().change_password(
        data.get("currentPassword") or "",
        data.get("newPassword") or "",
        data.get("confirmPassword") or "",
    )
    return {"message": message}, 200


@bp.post("/account/email-change")
@login_required
def request_email_change():
    data = get_json()
    require_fields(data, ["newEmail"])
    return {"message": _customer().request_email_change(data["newEmail"])}, 200


@bp.post("/account/email-change/confirm")
@login_required
def confirm_email_change():
    data = get_json()
    require_fields(data, ["newEmail", "otp"])
    message = _customer().confirm_email_change(data["newEmail"], data["otp"])
    return {"message": message, "redirect_to": LOGIN_PATH}, 200
