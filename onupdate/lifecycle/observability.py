"""Tracing of database writes/reads and on-update hook dispatches.

Disabled by default. When enabled, every traced operation becomes a
``QueryEvent`` that is optionally kept in memory, logged when slower than
the threshold, handed to listeners and mirrored as an OpenTelemetry span if
the ``otel`` extra is installed.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable

logger = logging.getLogger("onupdate")

DEFAULT_SLOW_QUERY_MS = 100.0


@dataclass(frozen=True)
class QueryEvent:
    """A traced database operation or hook dispatch."""

    operation: str
    collection: str
    filter: dict[str, Any] | None = None
    update: dict[str, Any] | None = None
    duration_ms: float = 0.0
    document_class: str = ""
    changed_columns: tuple[str, ...] | None = None
    hooks: tuple[str, ...] | None = None


@dataclass
class _TracingConfig:
    enabled: bool = False
    slow_query_ms: float = DEFAULT_SLOW_QUERY_MS
    capture_events: bool = False
    listeners: list[Callable[[QueryEvent], Any]] = field(default_factory=list)
    events: list[QueryEvent] = field(default_factory=list)


_config = _TracingConfig()


def enable_tracing(slow_query_ms: float = DEFAULT_SLOW_QUERY_MS, capture_events: bool = False) -> None:
    """Start tracing. Listeners and captured events are kept."""
    _config.enabled = True
    _config.slow_query_ms = slow_query_ms
    _config.capture_events = capture_events


def disable_tracing() -> None:
    """Stop tracing and forget listeners and captured events."""
    global _config
    _config = _TracingConfig()


def is_tracing() -> bool:
    return _config.enabled


def get_events() -> list[QueryEvent]:
    """Events captured since tracing was enabled with ``capture_events``."""
    return list(_config.events)


def add_listener(callback: Callable[[QueryEvent], Any]) -> None:
    _config.listeners.append(callback)


def emit_event(event: QueryEvent) -> None:
    if not _config.enabled:
        return

    if _config.capture_events:
        _config.events.append(event)

    if event.duration_ms > _config.slow_query_ms:
        logger.warning(
            "Slow query: %s on %s took %.1fms (threshold: %.1fms)",
            event.operation,
            event.collection,
            event.duration_ms,
            _config.slow_query_ms,
        )

    for listener in _config.listeners:
        listener(event)

    _emit_otel_span(event)


def _emit_otel_span(event: QueryEvent) -> None:
    try:
        from opentelemetry import trace
    except ImportError:
        return

    attributes: dict[str, Any] = {
        "db.system": "mongodb",
        "db.collection": event.collection,
        "db.operation": event.operation,
    }
    if event.duration_ms:
        attributes["db.duration_ms"] = event.duration_ms
    if event.changed_columns is not None:
        attributes["onupdate.changed_columns"] = list(event.changed_columns)
    if event.hooks is not None:
        attributes["onupdate.hooks"] = list(event.hooks)

    tracer = trace.get_tracer("onupdate")
    with tracer.start_as_current_span(f"onupdate.{event.operation}", attributes=attributes):
        pass


@asynccontextmanager
async def track_query(
    operation: str,
    collection: str,
    document_class: str = "",
    filter: dict | None = None,
    update: dict | None = None,
) -> AsyncIterator[None]:
    """Time the wrapped operation and emit a QueryEvent for it."""
    if not _config.enabled:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        emit_event(
            QueryEvent(
                operation=operation,
                collection=collection,
                filter=filter,
                update=update,
                duration_ms=(time.perf_counter() - start) * 1000,
                document_class=document_class,
            )
        )
