from flask import Blueprint

from anviboutique.app.extensions import backend
from anviboutique.app.common.validation import get_json
from anviboutique.storefront.services import NewsletterService

bp = Blueprint("newsletter", __name__)


@bp.post("/newsletter/subscribe")
def subscribe():
    data = get_json()
    message = NewsletterService(backend.client()).subscribe(data.get("email") or "")
    return {"message": message}, 200
