from flask import Flask

from anviboutique.modules.auth.routes import bp as auth_bp
from anviboutique.modules.catalog.routes import bp as catalog_bp
from anviboutique.modules.cart.routes import bp as cart_bp
from anviboutique.modules.wishlist.routes import bp as wishlist_bp
from anviboutique.modules.account.routes import bp as account_bp
from anviboutique.modules.newsletter.routes import bp as newsletter_bp


def register_api_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(catalog_bp, url_prefix="/api")
    app.register_blueprint(cart_bp, url_prefix="/api")
    app.register_blueprint(wishlist_bp, url_prefix="/api")
    app.register_blueprint(account_bp, url_prefix="/api")
    app.register_blueprint(newsletter_bp, url_prefix="/api")

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": "Anvi Boutique Storefront",
            "version": "0.1.0",
            "endpoints": {
                "auth": [
                    "/auth/login", "/auth/logout", "/auth/register", "/auth/me",
                    "/auth/verify", "/auth/resend-otp", "/auth/forgot-password",
                    "/auth/verify-reset-otp", "/auth/reset-password", "/auth/password-strength",
                ],
                "catalog": ["/products", "/products/featured", "/products/categories", "/products/<id>"],
                "cart": ["/cart", "/cart/items", "/cart/items/<id>"],
                "wishlist": ["/wishlist", "/wishlist/<product_id>"],
                "account": ["/account/profile", "/account/password", "/account/email-change", "/account/email-change/confirm"],
                "newsletter": ["/newsletter/subscribe"],
            },
        }, 200
