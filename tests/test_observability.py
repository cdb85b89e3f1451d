import logging

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from storefront.main import create_app
from storefront.metrics import StoreMetrics
from storefront.observability import configure_logging, init_tracing


class TestStoreMetrics:
    def test_instances_do_not_share_counters(self):
        first = StoreMetrics()
        second = StoreMetrics()

        first.orders_created_total.inc()

        assert first.orders_created() == 1.0
        assert second.orders_created() == 0.0

    def test_render_is_prometheus_text(self):
        metrics = StoreMetrics(registry=CollectorRegistry())
        metrics.orders_created_total.inc(3)

        body, content_type = metrics.render()

        assert content_type.startswith("text/plain")
        assert b"# TYPE orders_created_total counter" in body
        assert b"orders_created_total 3.0" in body


class TestBootstrap:
    def test_configure_logging_quiets_werkzeug(self):
        configure_logging("DEBUG")

        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_init_tracing_sets_service_name(self):
        provider = init_tracing("storefront-test", "http://localhost:4318/")
        try:
            assert provider.resource.attributes["service.name"] == "storefront-test"
        finally:
            provider.shutdown()


class TestRequestSpans:
    TRACEPARENT = "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"

    def build(self, sqlite_factory):
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))

        app = create_app(
            sqlite_factory,
            StoreMetrics(registry=CollectorRegistry()),
            tracer=provider.get_tracer("storefront-test"),
        )
        seen = {}

        @app.route("/current-span")
        def current_span():
            seen["context"] = trace.get_current_span().get_span_context()
            return "ok"

        return app, exporter, seen

    def test_span_continues_incoming_trace(self, sqlite_factory):
        app, exporter, _ = self.build(sqlite_factory)

        app.test_client().get("/current-span", headers={"traceparent": self.TRACEPARENT})

        (span,) = exporter.get_finished_spans()
        assert span.name == "GET /current-span"
        assert span.context.trace_id == 0x0AF7651916CD43DD8448EB211C80319C
        assert span.parent.span_id == 0xB7AD6B7169203331
        assert span.attributes["http.status_code"] == 200

    def test_span_is_current_inside_handler_and_detached_after(self, sqlite_factory):
        app, exporter, seen = self.build(sqlite_factory)

        app.test_client().get("/current-span")

        (span,) = exporter.get_finished_spans()
        assert span.parent is None
        assert seen["context"].span_id == span.context.span_id
        assert not trace.get_current_span().get_span_context().is_valid
