"""OpenTelemetry tracing configuration."""

from typing import Iterable, Mapping, Optional, Tuple, Union

from opentelemetry import context, propagate, trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from phoenix.core.config import Settings, settings as default_settings
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

_tracer_provider: Optional[TracerProvider] = None

HeaderCarrier = Union[Mapping[str, Union[str, bytes]], Iterable[Tuple[str, Union[str, bytes]]]]


def configure_tracing(settings: Optional[Settings] = None) -> Optional[TracerProvider]:
    """Install an SDK tracer provider with a console exporter.

    When tracing is disabled the API's no-op provider stays in place and
    spans cost nothing.

    Args:
        settings: Application settings (defaults to the module-level instance)

    Returns:
        The installed provider, or None when tracing is disabled
    """
    global _tracer_provider

    settings = settings or default_settings
    if _tracer_provider is not None:
        return _tracer_provider

    if not settings.tracing.enabled:
        LOGGER.info("OpenTelemetry tracing is disabled via configuration")
        return None

    resource = Resource.create({
        "service.name": settings.tracing.service_name,
        "service.version": settings.app_version,
        "service.environment": settings.environment,
    })
    _tracer_provider = TracerProvider(resource=resource)
    _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(_tracer_provider)

    LOGGER.info(f"OpenTelemetry tracing configured for service {settings.tracing.service_name}")
    return _tracer_provider


def shutdown_tracing() -> None:
    """Flush pending spans."""
    if _tracer_provider is not None:
        _tracer_provider.shutdown()


def get_tracer(name: str, tracer_provider: Optional[trace.TracerProvider] = None) -> trace.Tracer:
    """Get a tracer from the given provider or the global one."""
    return trace.get_tracer(name, tracer_provider=tracer_provider)


def extract_context(headers: Optional[HeaderCarrier]) -> Optional[context.Context]:
    """Extract a parent trace context from message headers.

    Kafka delivers headers as a list of (key, bytes) pairs; both that shape
    and a plain mapping are accepted. Returns None when no headers are given.
    """
    if not headers:
        return None

    items = headers.items() if isinstance(headers, Mapping) else headers
    carrier = {}
    for key, value in items:
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        carrier[key.lower()] = value
    return propagate.extract(carrier)
