"""Client-side form checks.

Each ``validate_*`` returns ``{field: message}``; an empty dict means the
form may be submitted. Nothing here talks to the backend.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^[+]?[0-9]{10,15}$")
PASSWORD_REGEX = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
OTP_REGEX = re.compile(r"^[0-9]{6}$")

PASSWORD_RULE = (
    "Password must be at least 8 characters with 1 uppercase, 1 lowercase, "
    "1 number, and 1 special character (@$!%*?&)"
)


def password_strength(password: str) -> int:
    """Score 0..5, one point per satisfied rule."""
    if not password:
        return 0
    score = 0
    if len(password) >= 8:
        score += 1
    if re.search(r"[a-z]", password):
        score += 1
    if re.search(r"[A-Z]", password):
        score += 1
    if re.search(r"[0-9]", password):
        score += 1
    if re.search(r"[@$!%*?&]", password):
        score += 1
    return score


def strength_label(score: int) -> str:
    if score <= 0:
        return ""
    if score <= 2:
        return "Weak"
    if score <= 4:
        return "Medium"
    return "Strong"


def _text(form: Mapping[str, Any], name: str) -> str:
    return str(form.get(name) or "").strip()


def validate_email(email: Any, field: str = "email") -> Dict[str, str]:
    email = str(email or "").strip()
    if not email:
        return {field: "Email is required"}
    if not EMAIL_REGEX.match(email):
        return {field: "Please enter a valid email address"}
    return {}


def validate_otp(otp: Any, field: str = "otp") -> Dict[str, str]:
    otp = str(otp or "").strip()
    if not otp:
        return {field: "Please enter OTP"}
    if not OTP_REGEX.match(otp):
        return {field: "OTP must be 6 digits"}
    return {}


def _validate_new_password(password: str, confirm: str, field: str, confirm_field: str) -> Dict[str, str]:
    errors = {}
    if not password:
        errors[field] = "Password is required"
    elif not PASSWORD_REGEX.match(password):
        errors[field] = PASSWORD_RULE

    if not confirm:
        errors[confirm_field] = "Please confirm your password"
    elif password != confirm:
        errors[confirm_field] = "Passwords do not match"
    return errors


def validate_registration(form: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    for name, label in (("firstName", "First name"), ("lastName", "Last name")):
        value = _text(form, name)
        if not value:
            errors[name] = f"{label} is required"
        elif not 2 <= len(value) <= 50:
            errors[name] = f"{label} must be between 2 and 50 characters"

    errors.update(validate_email(form.get("username"), field="username"))

    phone = _text(form, "phoneNumber")
    if not phone:
        errors["phoneNumber"] = "Phone number is required"
    elif not PHONE_REGEX.match(phone):
        errors["phoneNumber"] = "Please enter a valid phone number (10-15 digits)"

    errors.update(
        _validate_new_password(
            str(form.get("password") or ""),
            str(form.get("confirmPassword") or ""),
            "password",
            "confirmPassword",
        )
    )

    if not form.get("termsAccepted"):
        errors["termsAccepted"] = "You must accept the Terms and Privacy Policy to register"

    return errors


def validate_password_change(form: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.get("currentPassword"):
        errors["currentPassword"] = "Current password is required"
    new = str(form.get("newPassword") or "")
    confirm = str(form.get("confirmPassword") or "")
    errors.update(_validate_new_password(new, confirm, "newPassword", "confirmPassword"))
    if errors.get("confirmPassword") == "Passwords do not match":
        errors["confirmPassword"] = "New passwords do not match"
    return errors


def validate_password_reset(password: str, confirm: str) -> Dict[str, str]:
    return _validate_new_password(password or "", confirm or "", "password", "confirmPassword")
