# storefront/main.py
#
# The Flask web app.
# Deliberately plain - 3 business routes + /metrics + /health.
# Instrumentation lives in middleware.py, data access in repositories.py.
#
# Run with: python -m storefront.main

import logging
import sys

from flask import Flask, Response, abort, redirect, render_template, request, url_for

from storefront import config
from storefront.db import MAX_INT, MAX_MONEY, ConnectionFactory, init_db
from storefront.errors import RepositoryError
from storefront.metrics import StoreMetrics
from storefront.middleware import register_middleware
from storefront.observability import init_observability
from storefront.repositories import OrderRepository, ProductRepository

logger = logging.getLogger(__name__)


def create_app(factory: ConnectionFactory, metrics: StoreMetrics = None, tracer=None) -> Flask:
    """
    Build the app around an existing connection factory.
    Schema init is NOT done here - main() does it before serving,
    tests do it in a fixture.
    """
    metrics = metrics or StoreMetrics()
    products = ProductRepository(factory)
    orders = OrderRepository(factory, metrics)

    app = Flask(__name__)
    app.extensions["storefront"] = {
        "metrics": metrics,
        "products": products,
        "orders": orders,
    }

    register_middleware(app, metrics, tracer)

    @app.route("/")
    def index():
        try:
            catalog = products.list_all()
        except RepositoryError:
            logger.exception("Error loading products")
            abort(500)
        return render_template("index.html", products=catalog)

    @app.route("/checkout", methods=["POST"])
    def checkout():
        product_id = request.values.get("product_id", type=int)
        quantity = request.values.get("quantity", type=int)
        if product_id is None or quantity is None or not 1 <= quantity <= MAX_INT:
            abort(400)
        # ids past the INTEGER column range can't exist
        if not 1 <= product_id <= MAX_INT:
            abort(404)

        try:
            product = products.get_by_id(product_id)
            if product is None:
                abort(404)

            total = product.price * quantity
            if total > MAX_MONEY:
                abort(400)

            order_id = orders.create(product_id, quantity, total)
        except RepositoryError:
            logger.exception("Error processing checkout")
            abort(500)

        logger.info(
            f"Order created: id={order_id}, product={product.name}, total={total}"
        )
        return redirect(url_for("success", order_id=order_id))

    @app.route("/success")
    def success():
        order_id = request.args.get("order_id", type=int)
        if order_id is None:
            abort(400)
        if not 1 <= order_id <= MAX_INT:
            abort(404)

        try:
            order = orders.get_by_id(order_id)
            if order is None:
                abort(404)

            # No FK on orders.product_id, the product may be gone
            product = products.get_by_id(order.product_id)
        except RepositoryError:
            logger.exception("Error loading success page")
            abort(500)

        return render_template("success.html", order=order, product=product)

    @app.route("/metrics")
    def prometheus_metrics():
        body, content_type = metrics.render()
        return Response(body, content_type=content_type)

    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app


def main():
    init_observability()

    factory = ConnectionFactory(config.DATABASE_DSN)
    try:
        init_db(factory)
    except RepositoryError:
        logger.exception("Database initialization failed, not starting")
        sys.exit(1)

    app = create_app(factory)

    logger.info(f"Storefront starting on {config.APP_HOST}:{config.APP_PORT}")
    app.run(host=config.APP_HOST, port=config.APP_PORT, debug=False, threaded=True)


if __name__ == "__main__":
    main()
