"""Lightweight helpers for configuring OpenTelemetry exporters.

``opentelemetry-api`` is always installed, so spans can be opened anywhere;
they are no-ops until :func:`configure_telemetry` installs an SDK provider.
The SDK and exporters come from the optional ``telemetry`` extra.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Final

from opentelemetry import trace

_telemetry_configured: Final[dict[str, bool]] = {"configured": False}
TRACER_NAME = "projectfield"


@lru_cache(maxsize=1)
def _load_sdk() -> dict[str, Any] | None:
    try:  # pragma: no cover - optional dependency
        exporter_module = importlib.import_module(
            "opentelemetry.exporter.otlp.proto.http.trace_exporter"
        )
        resources_module = importlib.import_module("opentelemetry.sdk.resources")
        trace_sdk_module = importlib.import_module("opentelemetry.sdk.trace")
        export_module = importlib.import_module("opentelemetry.sdk.trace.export")
    except ImportError:
        return None

    return {
        "TracerProvider": trace_sdk_module.TracerProvider,
        "Resource": resources_module.Resource,
        "BatchSpanProcessor": export_module.BatchSpanProcessor,
        "ConsoleSpanExporter": export_module.ConsoleSpanExporter,
        "OTLPSpanExporter": exporter_module.OTLPSpanExporter,
    }


def configure_telemetry(
    *,
    service_name: str,
    exporter: str = "console",
    endpoint: str | None = None,
) -> bool:
    """Install an SDK tracer provider once per process.

    Returns False when the SDK is not installed; spans then stay no-ops.
    """

    if _telemetry_configured["configured"]:
        return True

    runtime = _load_sdk()
    if runtime is None:
        logging.getLogger(__name__).debug(
            "OpenTelemetry SDK not installed; spans remain no-ops"
        )
        return False

    resource = runtime["Resource"].create({"service.name": service_name})
    provider = runtime["TracerProvider"](resource=resource)

    if exporter.lower() == "otlp":
        otlp_cls = runtime["OTLPSpanExporter"]
        span_exporter = otlp_cls(endpoint=endpoint) if endpoint else otlp_cls()
    else:
        span_exporter = runtime["ConsoleSpanExporter"]()

    provider.add_span_processor(runtime["BatchSpanProcessor"](span_exporter))
    trace.set_tracer_provider(provider)
    _telemetry_configured["configured"] = True
    return True


@contextmanager
def span(name: str, **attributes: Any) -> Iterator[Any]:
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(name) as current:
        for key, value in attributes.items():
            if value is not None:
                current.set_attribute(key, value)
        yield current


__all__ = ["configure_telemetry", "span"]
