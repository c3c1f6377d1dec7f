# telemetry.py — OpenTelemetry tracing for the Taskboard API
"""
Exports spans to an OTLP collector when OTEL_EXPORTER_OTLP_ENDPOINT is set.
Without an endpoint, or without the `telemetry` extra installed, every
function here is a no-op so tests and local runs need nothing extra.
"""
import os
import logging
from contextlib import contextmanager

logger = logging.getLogger("taskboard.telemetry")

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "taskboard-api")
SERVICE_VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")

_provider = None


def _instrument(label: str, fn) -> None:
    try:
        fn()
        logger.info(f"{label} instrumented with OpenTelemetry")
    except ImportError:
        logger.warning(f"opentelemetry instrumentation for {label} not installed")


def setup_telemetry(app=None, engine=None):
    """Register a tracer provider and instrument FastAPI, the DB engine and httpx."""
    global _provider
    if not OTLP_ENDPOINT:
        logger.info("OpenTelemetry disabled (OTEL_EXPORTER_OTLP_ENDPOINT not set)")
        return None

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.resources import Resource, SERVICE_NAME as RES_SVC_NAME
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError:
        logger.info("OpenTelemetry SDK not installed — tracing disabled")
        return None

    resource = Resource.create({
        RES_SVC_NAME: SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "deployment.environment": ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=True)))
    trace.set_tracer_provider(provider)

    if app is not None:
        def _fastapi():
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
            FastAPIInstrumentor.instrument_app(app, excluded_urls="health", tracer_provider=provider)
        _instrument("FastAPI", _fastapi)

    if engine is not None:
        def _sqlalchemy():
            from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
            SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)
        _instrument("SQLAlchemy", _sqlalchemy)

    def _httpx():
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
        HTTPXClientInstrumentor().instrument(tracer_provider=provider)
    _instrument("HTTPX", _httpx)

    _provider = provider
    logger.info(f"OpenTelemetry initialised → {OTLP_ENDPOINT}")
    return provider


@contextmanager
def span(name: str, **attributes):
    """Start a span when tracing is on; otherwise do nothing."""
    if _provider is None:
        yield None
        return
    tracer = _provider.get_tracer("taskboard", SERVICE_VERSION)
    with tracer.start_as_current_span(name) as current:
        for key, value in attributes.items():
            current.set_attribute(key, value)
        yield current
