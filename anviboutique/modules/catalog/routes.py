from __future__ import annotations

from flask import Blueprint, request

from anviboutique.app.extensions import backend
from anviboutique.storefront.catalog import CatalogFetcher
from anviboutique.storefront.display import sale_badge, star_partition, stock_message
from anviboutique.storefront.filters import (
    CATEGORIES,
    COLORS,
    SORT_LABELS,
    STATUS_LABELS,
    parse_query_params,
    to_query_params,
    to_query_string,
)
from anviboutique.storefront.models import Product
from anviboutique.storefront.services import ProductService

bp = Blueprint("catalog", __name__)


def _card(p: Product) -> dict:
    data = p.to_dict()
    badge = sale_badge(p)
    data["badge"] = {"kind": badge[0], "percent": badge[1]} if badge else None
    data["stock_message"] = stock_message(p)
    return data


@bp.get("/products")
def list_products():
    state = parse_query_params(request.args)

    fetcher = CatalogFetcher(ProductService(backend.client()).list_products)
    fetcher.fetch(state)

    return {
        "items": [_card(p) for p in fetcher.products],
        "count": len(fetcher.products),
        "title": state.category or "All Products",
        "filters": to_query_params(state),
        "active_filters": state.describe(),
        # canonical query string for the address bar
        "query": to_query_string(state),
        "notice": fetcher.notice,
        "redirect_to": getattr(fetcher.last_error, "redirect_to", None),
    }, 200


@bp.get("/products/filters")
def filter_options():
    return {
        "categories": list(CATEGORIES),
        "colors": list(COLORS),
        "sort": [{"value": k.value, "label": v} for k, v in SORT_LABELS.items()],
        "status": [{"value": k.value, "label": v} for k, v in STATUS_LABELS.items()],
    }, 200


@bp.get("/products/featured")
def featured_products():
    products = ProductService(backend.client()).featured()
    return {"items": [_card(p) for p in products]}, 200


@bp.get("/products/categories")
def categories():
    return {"categories": ProductService(backend.client()).categories()}, 200


@bp.get("/products/<int:product_id>")
def product_detail(product_id: int):
    detail = ProductService(backend.client()).detail(product_id)
    full, half, empty = star_partition(detail.average_rating)

    return {
        "product": _card(detail.product),
        "reviews_summary": {
            "avg_rating": detail.average_rating,
            "count": detail.review_count,
            "stars": {"full": full, "half": half, "empty": empty},
        },
        "reviews": [
            {
                "id": r.id,
                "rating": r.rating,
                "comment": r.comment,
                "author": r.author,
                "created_at": r.created_at,
            }
            for r in detail.reviews
        ],
        "related_products": [_card(p) for p in detail.related_products],
    }, 200
