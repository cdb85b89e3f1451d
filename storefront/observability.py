# storefront/observability.py
#
# Single entry point for logging + tracing setup.
# Called once from main() before the app is built.
# Handlers and repositories never import this.

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from storefront import config

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [STOREFRONT] %(levelname)s %(name)s: %(message)s"
    )
    # Werkzeug already logs one line per request
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def init_tracing(service_name: str, endpoint: str) -> TracerProvider:
    """
    Export spans over OTLP/HTTP.
    endpoint is the collector base URL, /v1/traces gets appended.
    """
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name}),
        sampler=ALWAYS_ON,
    )
    exporter = OTLPSpanExporter(endpoint=f"{endpoint.rstrip('/')}/v1/traces")
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    logger.info(f"Tracing -> {endpoint} as {service_name}")
    return provider


def init_observability():
    configure_logging(config.LOG_LEVEL)

    if config.TRACING_ENABLED:
        init_tracing(config.OTEL_SERVICE_NAME, config.OTEL_EXPORTER_OTLP_ENDPOINT)
    else:
        logger.info("Tracing disabled")

    logger.info("Metrics: /metrics")
