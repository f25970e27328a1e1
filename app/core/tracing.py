"""
OpenTelemetry tracing for the ingestion service.

Disabled unless OTEL_ENABLED=true. When disabled, get_tracer() still returns
a no-op tracer, so indexing and transcription code can open spans
unconditionally.

Usage:
    from app.core.tracing import get_tracer

    tracer = get_tracer("Memora.Knowledge.Indexer")
    with tracer.start_as_current_span("index_source") as span:
        span.set_attribute("memora.source_id", source_id)

Environment Variables:
    OTEL_ENABLED: "true" to enable tracing (default: false)
    OTEL_SERVICE_NAME: Override service name (default: memora-ingestion-service)
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.trace import Tracer
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

logger = logging.getLogger("Memora.Tracing")

DEFAULT_SERVICE_NAME = "memora-ingestion-service"

_tracer_provider: Optional[TracerProvider] = None
_is_initialized = False


def is_tracing_enabled() -> bool:
    return os.getenv("OTEL_ENABLED", "false").lower() == "true"


def setup_tracing(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    Install a global TracerProvider exporting spans to the console.

    Returns None (and installs nothing) when tracing is disabled.
    """
    global _tracer_provider, _is_initialized

    if _is_initialized:
        return _tracer_provider

    _is_initialized = True
    if not is_tracing_enabled():
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        return None

    name = service_name or os.getenv("OTEL_SERVICE_NAME") or DEFAULT_SERVICE_NAME
    _tracer_provider = TracerProvider(resource=Resource.create({SERVICE_NAME: name}))
    _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(_tracer_provider)

    logger.info(f"OpenTelemetry tracing initialized for service: {name}")
    return _tracer_provider


def get_tracer(name: str) -> Tracer:
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    """Trace incoming requests on the FastAPI app and outgoing httpx calls."""
    if not is_tracing_enabled():
        return

    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    logger.info("FastAPI and httpx instrumentation enabled")


def shutdown_tracing() -> None:
    """Flush pending spans and reset so setup_tracing() can run again."""
    global _tracer_provider, _is_initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shut down")

    _tracer_provider = None
    _is_initialized = False
