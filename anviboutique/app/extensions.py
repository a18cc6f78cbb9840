from __future__ import annotations

from typing import Optional

import requests
from flask import Flask, current_app, g, session
from flask_cors import CORS

from anviboutique.storefront.client import ApiClient
from anviboutique.storefront.session import SessionContext


class Backend:
    """Connection to the boutique REST API.

    Owns one pooled ``requests.Session`` per app and hands out an
    ``ApiClient`` bound to the current visitor's session cookie.
    """

    def __init__(self, app: Optional[Flask] = None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        http = requests.Session()
        http.headers["User-Agent"] = "AnviBoutiqueStorefront/0.1"
        app.extensions["backend"] = {
            "http": http,
            "base_url": app.config["BACKEND_API_URL"],
            "timeout": app.config["BACKEND_TIMEOUT"],
        }

    @property
    def http(self) -> requests.Session:
        return current_app.extensions["backend"]["http"]

    def client(self) -> ApiClient:
        """The per-request client, created on first use."""
        if "api_client" not in g:
            state = current_app.extensions["backend"]
            g.api_client = ApiClient(
                state["base_url"],
                SessionContext(session),
                http=state["http"],
                timeout=state["timeout"],
                request_id=getattr(g, "request_id", None),
            )
        return g.api_client


# Singletons (initialized in app factory)
backend = Backend()
cors = CORS()
