"""Tests for tracing setup and span helpers."""

import pytest
from click.testing import CliRunner

from unified_save import server
from unified_save.cli import cli
from unified_save.config import TelemetryConfig
from unified_save.telemetry import SaveSpan, configure_telemetry, get_trace_context
from unified_save.telemetry import tracer


@pytest.fixture
def init_calls(monkeypatch):
    """Record init_telemetry calls instead of installing a provider."""
    calls = []

    def record(config=None):
        calls.append(config)
        return True

    monkeypatch.setattr(tracer, "init_telemetry", record)
    return calls


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "unified-save.yaml"
    path.write_text(
        "settings:\n"
        f"  save_directory: {tmp_path / 'Saves'}\n"
        "server:\n"
        "  port: 9911\n"
        "telemetry:\n"
        "  enabled: true\n"
        "  service_name: slots-test\n"
        "  otlp_endpoint: http://collector:4317\n"
    )
    return path


def test_spans_without_provider():
    """Test that span helpers work before telemetry is initialized."""
    with SaveSpan.save("save-0", "memory") as span:
        span.set_attribute("save.success", True)
        with SaveSpan.backend("save", "save-0", "memory"):
            pass

    assert get_trace_context() == {}


def test_configure_telemetry_enabled(init_calls):
    telemetry = TelemetryConfig(
        enabled=True,
        service_name="slots",
        otlp_endpoint="http://collector:4317",
        console_export=True,
    )

    assert configure_telemetry(telemetry) is True

    assert len(init_calls) == 1
    assert init_calls[0].service_name == "slots"
    assert init_calls[0].otlp_endpoint == "http://collector:4317"
    assert init_calls[0].console_export is True


def test_configure_telemetry_disabled(init_calls):
    assert configure_telemetry(TelemetryConfig(otlp_endpoint="http://collector:4317")) is False
    assert init_calls == []


def test_server_main_applies_telemetry(init_calls, config_file, monkeypatch):
    """Test that the server entry point initializes tracing from config."""
    runs = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: runs.append(kwargs))

    server.main(str(config_file))

    assert runs == [{"host": "127.0.0.1", "port": 9911, "log_level": "info"}]
    assert [c.service_name for c in init_calls] == ["slots-test"]


def test_cli_serve_applies_telemetry(init_calls, config_file, monkeypatch):
    runs = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: runs.append(kwargs))

    result = CliRunner().invoke(cli, ["-c", str(config_file), "serve", "--port", "9912"], obj={})

    assert result.exit_code == 0, result.output
    assert runs[0]["port"] == 9912
    assert [c.otlp_endpoint for c in init_calls] == ["http://collector:4317"]
