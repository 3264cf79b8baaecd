"""
Save-specific span helpers.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Optional, Dict

from opentelemetry import trace

from .tracer import get_tracer

logger = logging.getLogger("unified_save.telemetry")


class SpanKind(Enum):
    """Types of save spans."""

    SAVE = "save"
    LOAD = "load"
    CAPTURE = "capture"
    RESTORE = "restore"
    BACKEND = "backend"


class SaveSpan:
    """
    Helper for creating save-specific spans.

    Usage:
        with SaveSpan.save(slot_key="save-0") as span:
            span.set_attribute("save.bytes", len(data))
    """

    @staticmethod
    @contextmanager
    def save(slot_key: str, backend: Optional[str] = None):
        """Span for a full save (capture, serialize, write)."""
        with get_tracer().start_as_current_span(
            "save.save",
            attributes={
                "save.span_kind": SpanKind.SAVE.value,
                "save.slot_key": slot_key,
                "save.backend": backend or "",
            },
        ) as span:
            yield span

    @staticmethod
    @contextmanager
    def load(slot_key: str, backend: Optional[str] = None):
        """Span for a full load (read, migrate, restore)."""
        with get_tracer().start_as_current_span(
            "save.load",
            attributes={
                "save.span_kind": SpanKind.LOAD.value,
                "save.slot_key": slot_key,
                "save.backend": backend or "",
            },
        ) as span:
            yield span

    @staticmethod
    @contextmanager
    def capture(system_count: int):
        with get_tracer().start_as_current_span(
            "save.capture",
            attributes={
                "save.span_kind": SpanKind.CAPTURE.value,
                "save.system_count": system_count,
            },
        ) as span:
            yield span

    @staticmethod
    @contextmanager
    def restore(entry_count: int):
        with get_tracer().start_as_current_span(
            "save.restore",
            attributes={
                "save.span_kind": SpanKind.RESTORE.value,
                "save.entry_count": entry_count,
            },
        ) as span:
            yield span

    @staticmethod
    @contextmanager
    def backend(operation: str, slot_key: str, backend: str):
        """Span for a single backend call."""
        with get_tracer().start_as_current_span(
            f"save.backend.{operation}",
            attributes={
                "save.span_kind": SpanKind.BACKEND.value,
                "save.operation": operation,
                "save.slot_key": slot_key,
                "save.backend": backend,
            },
        ) as span:
            yield span


def get_trace_context() -> Dict[str, str]:
    """Current trace_id / span_id, empty when no span is recording."""
    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return {}
    return {
        "trace_id": format(ctx.trace_id, '032x'),
        "span_id": format(ctx.span_id, '016x'),
    }
