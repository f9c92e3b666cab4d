import os

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

log = structlog.get_logger(__name__)

# OpenTelemetry accepts one global provider per process
_provider: TracerProvider | None = None


def init_tracer(app_name: str = "storefront-payments"):
    """Initialize OpenTelemetry tracer with OTLP exporter, once per process"""
    global _provider
    if _provider is not None:
        return _provider

    provider = TracerProvider(resource=Resource.create({"service.name": app_name}))

    # DISABLE_TRACING keeps spans in-process (tests, local runs without a collector)
    if os.getenv("DISABLE_TRACING", "").lower() not in {"1", "true", "yes"}:
        try:
            exporter = OTLPSpanExporter()
        except Exception as exc:  # pragma: no cover - only hit without a collector
            log.warning("OTLP exporter unavailable, using console", error=str(exc))
            exporter = ConsoleSpanExporter()
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _provider = provider
    return provider
