"""Session context for the signed-in customer.

The bearer token lives in a caller-supplied mapping (a plain dict for
scripts and tests, the Flask session cookie in the gateway). Nothing here is
global: whoever builds an ``ApiClient`` hands it the context explicitly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, MutableMapping, Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionContext:
    def __init__(self, storage: Optional[MutableMapping[str, Any]] = None):
        self._storage: MutableMapping[str, Any] = storage if storage is not None else {}
        self.invalidated_reason: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._storage.get(TOKEN_KEY) or None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._storage.get(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.get("role") == "ADMIN")

    def open(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self._storage[TOKEN_KEY] = token
        if user is not None:
            self._storage[USER_KEY] = user
        self.invalidated_reason = None

    def remember_user(self, user: Dict[str, Any]) -> None:
        self._storage[USER_KEY] = user

    def invalidate(self, reason: str = "logout") -> None:
        if self.token is not None:
            logger.info("Session invalidated (%s)", reason)
        self._storage.pop(TOKEN_KEY, None)
        self._storage.pop(USER_KEY, None)
        self.invalidated_reason = reason

    def auth_headers(self) -> Dict[str, str]:
        token = self.token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}
