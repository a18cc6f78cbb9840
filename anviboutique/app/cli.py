from __future__ import annotations

import click
from flask import Blueprint, current_app

from anviboutique.storefront.catalog import CatalogFetcher
from anviboutique.storefront.client import ApiClient
from anviboutique.storefront.display import sale_badge
from anviboutique.storefront.filters import parse_query_string, to_query_string
from anviboutique.storefront.services import ProductService
from anviboutique.storefront.session import SessionContext

cli_bp = Blueprint("cli", __name__, cli_group=None)


@cli_bp.cli.command("browse")
@click.argument("query", default="")
def browse(query: str) -> None:
    """Print the catalog for an address-bar style QUERY.

    Example: flask browse "category=Sarees&sortBy=priceAsc&maxPrice=5000"
    """
    state = parse_query_string(query)
    backend = current_app.extensions["backend"]
    api = ApiClient(backend["base_url"], SessionContext(), http=backend["http"], timeout=backend["timeout"])

    fetcher = CatalogFetcher(ProductService(api).list_products)
    fetcher.fetch(state)

    click.echo(f"?{to_query_string(state)}")
    for chip in state.describe():
        click.echo(f"  {chip}")
    if fetcher.notice:
        click.echo(f"! {fetcher.notice}", err=True)
    click.echo(f"{len(fetcher.products)} products found")
    for p in fetcher.products:
        badge = sale_badge(p)
        tag = f" [{badge[0].upper()} {badge[1]}%]" if badge else ""
        click.echo(f"{p.id:>6}  {p.name:<40} ₹{p.effective_price}{tag}")
