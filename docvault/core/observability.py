"""OpenTelemetry initialization helpers for DocVault."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from docvault.core.config import Settings

logger = logging.getLogger(__name__)
_TRACING_INITIALIZED = False


def setup_tracing(settings: Settings, app: Optional[FastAPI] = None) -> None:
    """Configure the tracer provider once per process and instrument `app` if given."""

    global _TRACING_INITIALIZED
    if not settings.TRACING_ENABLED:
        return

    if not _TRACING_INITIALIZED:
        resource = Resource.create(
            {
                "service.name": settings.API_TITLE.lower().replace(" ", "-"),
                "service.version": settings.API_VERSION,
                "environment": settings.ENVIRONMENT,
            }
        )

        provider = TracerProvider(resource=resource)
        if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
            exporter = OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                headers=parse_headers(settings.OTEL_EXPORTER_OTLP_HEADERS) or None,
            )
            provider.add_span_processor(BatchSpanProcessor(exporter))
            logger.info("OpenTelemetry tracing exporting to %s", settings.OTEL_EXPORTER_OTLP_ENDPOINT)
        else:
            logger.info("OpenTelemetry tracing initialized without an exporter")
        trace.set_tracer_provider(provider)
        _TRACING_INITIALIZED = True

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)


def parse_headers(raw_headers: Optional[str]) -> Dict[str, str]:
    """Parse `key=value,key2=value2` exporter headers, ignoring malformed entries."""

    if not raw_headers:
        return {}
    pairs: Dict[str, str] = {}
    for item in raw_headers.split(","):
        if "=" not in item:
            continue
        key, value = item.split("=", 1)
        if key.strip():
            pairs[key.strip()] = value.strip()
    return pairs


__all__ = ["parse_headers", "setup_tracing"]
