from __future__ import annotations

from typing import Any

from flask import jsonify

from anviboutique.storefront.errors import Outcome

# Expected failure reasons and the HTTP status they map to
OUTCOME_STATUS = {
    "below_minimum": 400,
    "above_stock": 409,
    "out_of_stock": 409,
    "size_required": 400,
    "unconfirmed": 428,
    "busy": 409,
    "not_found": 404,
    "session_expired": 401,
}


def outcome_response(outcome: Outcome, **extra: Any):
    body = {
        "ok": outcome.ok,
        "reason": outcome.reason,
        "message": outcome.message,
    }
    if outcome.redirect_to:
        body["redirect_to"] = outcome.redirect_to
    body.update(extra)
    if outcome.ok:
        status = 200
    elif outcome.reason in OUTCOME_STATUS:
        status = OUTCOME_STATUS[outcome.reason]
    elif outcome.status_code and 400 <= outcome.status_code < 500:
        # same passthrough as handle_backend_error
        status = outcome.status_code
    else:
        status = 502
    return jsonify(body), status
