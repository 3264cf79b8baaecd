"""
OpenTelemetry Tracer Configuration

Initializes OTEL with an optional OTLP exporter for save/load tracing.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger("unified_save.telemetry")

INSTRUMENTATION_NAME = "unified-save"

_tracer = None
_initialized = False


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "unified-save"
    service_version: str = "0.1.0"

    # OTLP exporter settings
    otlp_endpoint: Optional[str] = None  # e.g., "http://localhost:4317"
    otlp_insecure: bool = True

    # Console exporter for debugging
    console_export: bool = False

    @classmethod
    def from_env(cls) -> "TracingConfig":
        """Load config from environment variables."""
        return cls(
            service_name=os.getenv("OTEL_SERVICE_NAME", "unified-save"),
            service_version=os.getenv("UNIFIED_SAVE_VERSION", "0.1.0"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
            otlp_insecure=os.getenv("OTEL_EXPORTER_OTLP_INSECURE", "true").lower() == "true",
            console_export=os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true",
        )

    @classmethod
    def from_config(cls, telemetry) -> "TracingConfig":
        """Build from a TelemetryConfig section."""
        return cls(
            service_name=telemetry.service_name,
            otlp_endpoint=telemetry.otlp_endpoint,
            console_export=telemetry.console_export,
        )


def init_telemetry(config: Optional[TracingConfig] = None) -> bool:
    """
    Initialize OpenTelemetry tracing.

    Returns True if a tracer provider is installed.
    """
    global _tracer, _initialized

    if _initialized:
        return True

    config = config or TracingConfig.from_env()

    try:
        resource = Resource.create({
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        })
        provider = TracerProvider(resource=resource)

        if config.otlp_endpoint:
            try:
                from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
            except ImportError:
                logger.warning("OTEL: OTLP exporter not installed (pip install unified-save[otlp])")
            else:
                provider.add_span_processor(BatchSpanProcessor(
                    OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=config.otlp_insecure)
                ))
                logger.info(f"OTEL: OTLP exporter configured → {config.otlp_endpoint}")

        if config.console_export:
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
            logger.info("OTEL: Console exporter enabled")

        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(config.service_name, config.service_version)
        _initialized = True

        logger.info(f"OTEL: Telemetry initialized for {config.service_name}")
        return True

    except Exception as e:
        logger.error(f"OTEL: Failed to initialize ({e})")
        return False


def configure_telemetry(telemetry) -> bool:
    """Initialize tracing from a TelemetryConfig section when it is enabled."""
    if not telemetry.enabled:
        logger.debug("OTEL: Telemetry disabled in config")
        return False
    return init_telemetry(TracingConfig.from_config(telemetry))


def get_tracer():
    """
    Get the configured tracer instance.

    Falls back to the global provider's tracer (a no-op until a provider
    is installed).
    """
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(INSTRUMENTATION_NAME)
