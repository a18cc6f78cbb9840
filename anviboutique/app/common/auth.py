"""Login guard for gateway routes.

The bearer token issued by the backend is kept in the signed Flask session
cookie; a route is "logged in" when that token is present.
"""

from functools import wraps
from typing import Callable, TypeVar, Any

from flask import session

from anviboutique.storefront.errors import LOGIN_PATH
from anviboutique.storefront.session import SessionContext
from anviboutique.app.common.errors import abort_json

F = TypeVar("F", bound=Callable[..., Any])


def login_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not SessionContext(session).is_authenticated:
            abort_json(401, "unauthorized", "Authentication required", {"redirect_to": LOGIN_PATH})
        return fn(*args, **kwargs)

    return wrapper  # type: ignore
