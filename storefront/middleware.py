# storefront/middleware.py
#
# The instrumentation layer.
# Wraps EVERY Flask request transparently - routes don't know it's here.
#
# Flow:
# Request arrives  -> before_request (start timer, open server span)
# Route handler runs
# after_request    -> count request + observe duration
# teardown_request -> close the span (runs even when the handler blew up)

import logging
import time

from flask import g, request
from opentelemetry import context, propagate, trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from werkzeug.exceptions import HTTPException

from storefront.metrics import StoreMetrics

logger = logging.getLogger(__name__)


def _endpoint_label() -> str:
    """
    Route template rather than raw path, so /success?order_id=1 and
    /success?order_id=2 land in the same series. Unknown URLs share one label.
    """
    if request.url_rule is not None:
        return request.url_rule.rule
    return "unmatched"


def register_middleware(app, metrics: StoreMetrics, tracer=None):
    """
    Call this from create_app().
    Registers before/after/teardown hooks and the catch-all error handler.
    tracer defaults to the global provider's.
    """
    tracer = tracer or trace.get_tracer(__name__)

    @app.before_request
    def before_request():
        g.start_time = time.time()

        endpoint = _endpoint_label()
        # Continue the caller's trace when a traceparent header came in
        g.span = tracer.start_span(
            f"{request.method} {endpoint}",
            context=propagate.extract(request.headers),
            kind=SpanKind.SERVER,
            attributes={
                "http.method": request.method,
                "http.route": endpoint,
                "http.target": request.full_path,
            },
        )
        g.trace_token = context.attach(trace.set_span_in_context(g.span))

    @app.after_request
    def after_request(response):
        latency = time.time() - g.get("start_time", time.time())
        endpoint = _endpoint_label()

        metrics.http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=str(response.status_code),
        ).inc()
        metrics.http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(latency)

        span = g.get("span")
        if span is not None:
            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))

        return response

    @app.teardown_request
    def teardown_request(exc):
        token = g.pop("trace_token", None)
        if token is not None:
            context.detach(token)

        span = g.pop("span", None)
        if span is None:
            return
        if exc is not None:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
        span.end()

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        404s, 400s and redirects pass through untouched.
        Anything else is logged with its traceback and the client only
        sees a bare 500.
        """
        if isinstance(e, HTTPException):
            return e

        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return {"error": "Internal server error"}, 500
