"""
Unified Save Telemetry Module

OpenTelemetry integration for tracing save and load operations.
"""

from .tracer import init_telemetry, configure_telemetry, get_tracer, TracingConfig
from .spans import SaveSpan, SpanKind, get_trace_context

__all__ = [
    "init_telemetry",
    "configure_telemetry",
    "get_tracer",
    "TracingConfig",
    "SaveSpan",
    "SpanKind",
    "get_trace_context",
]
