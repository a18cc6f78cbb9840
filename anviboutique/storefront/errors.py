from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

LOGIN_PATH = "/login"


class StorefrontError(Exception):
    """Root of every error raised by the storefront client."""


@dataclass
class BackendError(StorefrontError):
    """Raised when the boutique API answers with an error or cannot be reached."""

    status_code: Optional[int]
    message: str
    code: str = "backend_error"
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if self.status_code is None:
            return f"{self.code}: {self.message}"
        return f"{self.status_code} {self.code}: {self.message}"


@dataclass
class SessionExpired(BackendError):
    """The backend rejected our credentials; the session is already invalidated."""

    status_code: Optional[int] = 401
    message: str = "Your session has expired. Please log in again."
    code: str = "session_expired"
    redirect_to: str = LOGIN_PATH


class InvalidFilter(StorefrontError, ValueError):
    pass


class FormInvalid(StorefrontError):
    """Client-side validation failed; nothing was sent."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(errors.values()))
        self.errors = errors


@dataclass(frozen=True)
class Outcome:
    """Result of a user-triggered action.

    Expected failures (bad input, busy item, missing confirmation, backend
    rejection) come back as ``ok=False`` with a machine ``reason`` and a
    human ``message`` instead of an exception, so the caller decides what
    to show and where to navigate.
    """

    ok: bool
    reason: str = "ok"
    message: Optional[str] = None
    redirect_to: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, message: Optional[str] = None) -> "Outcome":
        return cls(ok=True, message=message)

    @classmethod
    def rejected(cls, reason: str, message: Optional[str] = None) -> "Outcome":
        return cls(ok=False, reason=reason, message=message)

    @classmethod
    def from_error(cls, err: BackendError) -> "Outcome":
        redirect = getattr(err, "redirect_to", None)
        return cls(
            ok=False,
            reason=err.code,
            message=err.message,
            redirect_to=redirect,
            status_code=err.status_code,
        )
