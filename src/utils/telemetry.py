"""Telemetry helpers: JSON logging, a per-request trace id, and OpenTelemetry spans."""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor, SpanExporter
from opentelemetry.trace import Status, StatusCode

_otel_configured = False

_trace_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)


def get_trace_id() -> Optional[str]:
    return _trace_id.get()


def set_trace_id(trace_id: str | None) -> None:
    _trace_id.set(trace_id)


def new_trace_id() -> str:
    tid = uuid4().hex
    set_trace_id(tid)
    return tid


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        trace_id = getattr(record, "trace_id", None) or get_trace_id()
        if trace_id:
            payload["trace_id"] = trace_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str | None = None) -> None:
    """Install JSON formatting on the root handlers; level defaults to ``LOG_LEVEL``."""
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
    formatter = JsonFormatter()
    for handler in logging.getLogger().handlers:
        handler.setFormatter(formatter)


def configure_otel(service_name: str = "coinbase-beer-wallet", exporter: SpanExporter | None = None) -> None:
    """Install the process tracer provider once; spans go to stderr unless ``OTEL_CONSOLE_EXPORT=0``."""
    global _otel_configured
    if _otel_configured:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    elif os.getenv("OTEL_CONSOLE_EXPORT", "1") != "0":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    trace.set_tracer_provider(provider)
    _otel_configured = True


@contextmanager
def span(name: str, attrs: Optional[Dict[str, Any]] = None) -> Iterator[trace.Span]:
    """
    Run a block inside an OpenTelemetry span carrying ``attrs``; failures mark the
    span as errored. The duration is also logged at DEBUG.
    """
    logger = logging.getLogger(__name__)
    attrs = {key: value for key, value in (attrs or {}).items() if value is not None}
    start = time.perf_counter()
    failed = False
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(name, attributes=attrs, record_exception=False, set_status_on_exception=False) as otel_span:
        try:
            yield otel_span
        except BaseException as exc:
            failed = True
            otel_span.record_exception(exc)
            otel_span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 3)
            logger.debug(
                json.dumps(
                    {"event": "span", "name": name, "duration_ms": duration_ms, "failed": failed, "attrs": attrs},
                    ensure_ascii=False,
                )
            )
