from __future__ import annotations

import logging
from flask import Flask, jsonify, g
from werkzeug.exceptions import HTTPException

from anviboutique.app.config import Config
from anviboutique.app.extensions import backend, cors
from anviboutique.app.common.errors import ApiError
from anviboutique.app.common.request_context import init_request_id
from anviboutique.app.api.register import register_api_blueprints
from anviboutique.app.cli import cli_bp
from anviboutique.storefront.errors import BackendError, FormInvalid, SessionExpired


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    # Extensions
    backend.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}})

    @app.before_request
    def _before_request():
        init_request_id()

    @app.after_request
    def _mirror_request_id(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        return response

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    register_api_blueprints(app)

    # CLI (flask browse)
    app.register_blueprint(cli_bp)

    @app.get("/")
    def index():
        return (
            "<h1>Anvi Boutique</h1><p>Storefront is running. Visit <a href='/api'>/api</a>.</p>",
            200,
            {"Content-Type": "text/html"},
        )

    # Error handlers
    def _error(status: int, code: str, message: str, details: dict | None = None):
        payload = {
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": getattr(g, "request_id", None),
            }
        }
        return jsonify(payload), status

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return jsonify(err.to_dict(getattr(g, "request_id", None))), err.status_code

    @app.errorhandler(FormInvalid)
    def handle_form_invalid(err: FormInvalid):
        return _error(400, "validation_error", "Please correct the highlighted fields", {"fields": err.errors})

    @app.errorhandler(SessionExpired)
    def handle_session_expired(err: SessionExpired):
        # ApiClient already dropped the token from the cookie session
        return _error(401, err.code, err.message, {"redirect_to": err.redirect_to})

    @app.errorhandler(BackendError)
    def handle_backend_error(err: BackendError):
        status = err.status_code if err.status_code and 400 <= err.status_code < 500 else 502
        return _error(status, err.code, err.message)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        # Normalize Werkzeug errors into our JSON shape
        return _error(err.code or 500, "http_error", err.description, {"name": err.name})

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception("Unhandled exception")
        return _error(500, "internal_error", "Internal server error")

    return app
