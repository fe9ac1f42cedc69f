"""OpenTelemetry spans around reconciles and CockroachDB Cloud API calls."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from . import __version__

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None


def initialize_tracing(service_name: str = "crdb-cloud-operator") -> None:
    """Install an OTLP exporter when OTEL_TRACES_ENABLED=true.

    OTEL_EXPORTER_OTLP_ENDPOINT and OTEL_SERVICE_NAME override the defaults.
    Spans stay no-ops otherwise.
    """
    global _tracer

    if os.getenv("OTEL_TRACES_ENABLED", "false").lower() != "true":
        return

    try:
        service_name = os.getenv("OTEL_SERVICE_NAME", service_name)
        provider = TracerProvider(
            resource=Resource.create({"service.name": service_name, "service.version": __version__})
        )
        exporter = OTLPSpanExporter(endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"))
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(service_name, __version__)
    except Exception as e:
        logger.warning(f"Tracing disabled, exporter setup failed: {e}")


def get_tracer() -> Tracer | None:
    return _tracer


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Open a span for a reconcile pass or a remote call.

    Exceptions are recorded on the span and re-raised. Yields None when
    tracing is off.
    """
    if _tracer is None:
        yield None
        return

    span_attributes = dict(attributes or {})
    if kind:
        span_attributes["resource.kind"] = kind

    with _tracer.start_as_current_span(name, attributes=span_attributes) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise
