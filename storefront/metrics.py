# storefront/metrics.py
#
# Prometheus metric definitions.
#
# One StoreMetrics instance per process, built at startup and handed to
# whatever needs it (order repository, middleware). Each instance has its
# own registry, so tests can build as many as they like without
# "Duplicated timeseries" errors.

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)


class StoreMetrics:

    def __init__(self, registry: CollectorRegistry = None):
        if registry is None:
            registry = CollectorRegistry()
            ProcessCollector(registry=registry)
            PlatformCollector(registry=registry)
        self.registry = registry

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )
        self.orders_created_total = Counter(
            "orders_created_total",
            "Total orders created",
            registry=registry,
        )

    def orders_created(self) -> float:
        """Current value of the orders counter"""
        return self.registry.get_sample_value("orders_created_total") or 0.0

    def render(self):
        """Exposition text for the /metrics endpoint"""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
