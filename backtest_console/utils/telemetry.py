"""Tracing for console actions and the API calls they make.

A page action opens a ``ui.action.<name>`` span and every HTTP request made
while it runs opens a ``ui.api.<method>`` child. Both are tagged with the
request id held by the logging context, so one id ties together the span,
the ``x-request-id`` header and the log lines. Action outcomes are logged
whether or not OpenTelemetry is installed.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from loguru import logger

from backtest_console.logging_utils import current_request_id
from backtest_console.settings.config import AppSettings

try:  # installed with the "otel" extra
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.trace import Status, StatusCode
except ImportError:  # pragma: no cover - OTEL optional
    trace = None  # type: ignore
    Status = StatusCode = None  # type: ignore

_tracer = None
_session_id: Optional[str] = None


def split_pairs(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``k1=v1,k2=v2`` as used by the OTEL header and resource variables."""
    pairs = (segment.partition("=") for segment in (raw or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}


def resource_attributes(settings: AppSettings) -> Dict[str, str]:
    attributes = split_pairs(settings.otel_resource_attributes)
    attributes.update(
        {
            "service.name": settings.service_name,
            "service.version": settings.app_version,
            "deployment.environment": settings.environment,
        }
    )
    return attributes


def init_telemetry(settings: AppSettings) -> bool:
    """Install the OTLP exporter once per process; returns whether tracing is on."""
    global _tracer
    if _tracer is not None:
        return True
    if trace is None or settings.otel_endpoint is None:
        logger.info("tracing disabled otel_installed={}", trace is not None)
        return False
    provider = TracerProvider(resource=Resource.create(resource_attributes(settings)))
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.otel_endpoint,
                headers=split_pairs(settings.otel_headers),
            )
        )
    )
    trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer("backtest_console")
    logger.info("tracing enabled endpoint={}", settings.otel_endpoint)
    return True


def set_session_id(session_id: Optional[str]) -> None:
    global _session_id
    _session_id = session_id


def span_attributes(attributes: Mapping[str, Any]) -> Dict[str, str]:
    """Console context plus caller attributes, stringified; ``None`` values are dropped."""
    merged: Dict[str, str] = {"ui.request_id": current_request_id()}
    if _session_id:
        merged["ui.session_id"] = _session_id
    merged.update({key: str(value) for key, value in attributes.items() if value is not None})
    return merged


@contextmanager
def _traced(name: str, attributes: Mapping[str, Any]) -> Iterator[None]:
    if trace is None or _tracer is None:
        yield
        return
    span = _tracer.start_span(name, attributes=span_attributes(attributes))
    try:
        with trace.use_span(span, end_on_exit=True):
            yield
    except Exception as exc:
        span.record_exception(exc)
        if Status is not None:
            span.set_status(Status(StatusCode.ERROR))
        raise


@contextmanager
def ui_action_span(action: str, **attributes: Any) -> Iterator[None]:
    """Trace and log one user action, e.g. ``ui_action_span("backtest.run")``."""
    started = time.perf_counter()
    outcome = "ok"
    try:
        with _traced(f"ui.action.{action}", {"ui.action": action, **attributes}):
            yield
    except Exception:
        outcome = "error"
        raise
    finally:
        logger.info(
            "ui action action={} outcome={} duration_ms={:.1f}",
            action,
            outcome,
            (time.perf_counter() - started) * 1000,
        )


def api_span(method: str, path: str, ui_action: Optional[str] = None):
    return _traced(
        f"ui.api.{method.lower()}",
        {"http.method": method, "api.path": path, "ui.action": ui_action},
    )
