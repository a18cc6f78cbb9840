from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from anviboutique.storefront.errors import BackendError, SessionExpired
from anviboutique.storefront.session import SessionContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_TIMEOUT = 10.0


def _error_message(payload: Any, fallback: str) -> str:
    # Backend answers either {"error": "..."} or {"message": "..."}
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            err = err.get("message")
        return str(err or payload.get("message") or fallback)
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return fallback


class ApiClient:
    """Thin JSON client for the boutique REST API.

    Every request carries the session's bearer token. A 401 disposes of the
    stored credentials and raises ``SessionExpired``; the caller decides
    whether to navigate to the login page.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        http: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        request_id: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.http = http or requests.Session()
        self.timeout = timeout
        self.request_id = request_id

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        headers: Dict[str, str] = {"Accept": "application/json"}
        headers.update(self.session.auth_headers())
        if self.request_id:
            headers[REQUEST_ID_HEADER] = self.request_id

        try:
            resp = self.http.request(
                method,
                self.url(path),
                params=dict(params) if params else None,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BackendError(
                status_code=None,
                code="network_error",
                message="Could not reach the boutique service. Please try again.",
            ) from exc

        payload = self._decode(resp)

        if resp.status_code == 401:
            self.session.invalidate("unauthorized")
            raise SessionExpired(details={"path": path})

        if resp.status_code >= 400:
            message = _error_message(payload, resp.reason or "Request failed")
            logger.warning("%s %s -> %s %s", method, path, resp.status_code, message)
            raise BackendError(
                status_code=resp.status_code,
                message=message,
                code="not_found" if resp.status_code == 404 else "backend_error",
                details=payload if isinstance(payload, dict) else {},
            )

        return payload

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", path, params=params, json=json)

    def put(self, path: str, json: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PUT", path, params=params, json=json)

    def delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("DELETE", path, params=params)
