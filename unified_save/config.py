"""
Configuration management for Unified Save.

Supports YAML configuration with environment variable expansion.
"""

import os
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Any

import yaml


@dataclass
class SaveSettings:
    """Save directory, file format and slot naming."""
    save_directory: str = "Saves"
    file_extension: str = ".save"
    pretty_print: bool = True
    schema_version: int = 1
    use_save_slots: bool = True
    max_slots: int = 3
    manual_prefix: str = "save"
    autosave_prefix: str = "autosave"


@dataclass
class AutoSaveConfig:
    """Auto-save / auto-load triggers."""
    default_slot_key: str = "autosave"
    load_on_start: bool = False
    save_on_quit: bool = False
    save_on_pause: bool = False
    interval_seconds: float = 0.0  # <= 0 disables interval auto-save


@dataclass
class BackendConfig:
    """Slot backend selection."""
    kind: str = "file"  # file | sqlite | memory | http | null
    path: Optional[str] = None  # directory (file) or database path (sqlite)
    url: str = "http://localhost:8767"
    timeout: float = 10.0


@dataclass
class ServerConfig:
    """Slot server configuration."""
    host: str = "127.0.0.1"
    port: int = 8767


@dataclass
class TelemetryConfig:
    """OpenTelemetry export configuration."""
    enabled: bool = False
    service_name: str = "unified-save"
    otlp_endpoint: Optional[str] = None
    console_export: bool = False


@dataclass
class UnifiedSaveConfig:
    """Root configuration for Unified Save."""
    settings: SaveSettings = field(default_factory=SaveSettings)
    autosave: AutoSaveConfig = field(default_factory=AutoSaveConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values."""
    if isinstance(value, str):
        # Match ${VAR} or $VAR patterns
        pattern = r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)'

        def replace(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    return value


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_config(data: dict) -> UnifiedSaveConfig:
    """Build a config from an already-loaded mapping."""
    data = expand_env_vars(data or {})

    settings_data = data.get("settings", {}) or {}
    defaults = SaveSettings()
    settings = SaveSettings(
        save_directory=settings_data.get("save_directory", defaults.save_directory),
        file_extension=settings_data.get("file_extension", defaults.file_extension),
        pretty_print=_as_bool(settings_data.get("pretty_print"), defaults.pretty_print),
        schema_version=int(settings_data.get("schema_version", defaults.schema_version)),
        use_save_slots=_as_bool(settings_data.get("use_save_slots"), defaults.use_save_slots),
        max_slots=int(settings_data.get("max_slots", defaults.max_slots)),
        manual_prefix=settings_data.get("manual_prefix", defaults.manual_prefix),
        autosave_prefix=settings_data.get("autosave_prefix", defaults.autosave_prefix),
    )

    autosave_data = data.get("autosave", {}) or {}
    autosave = AutoSaveConfig(
        default_slot_key=autosave_data.get("default_slot_key", "autosave"),
        load_on_start=_as_bool(autosave_data.get("load_on_start"), False),
        save_on_quit=_as_bool(autosave_data.get("save_on_quit"), False),
        save_on_pause=_as_bool(autosave_data.get("save_on_pause"), False),
        interval_seconds=float(autosave_data.get("interval_seconds", 0.0)),
    )

    backend_data = data.get("backend", {}) or {}
    backend = BackendConfig(
        kind=backend_data.get("kind", "file"),
        path=backend_data.get("path"),
        url=backend_data.get("url", "http://localhost:8767"),
        timeout=float(backend_data.get("timeout", 10.0)),
    )

    server_data = data.get("server", {}) or {}
    server = ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=int(server_data.get("port", 8767)),
    )

    telemetry_data = data.get("telemetry", {}) or {}
    telemetry = TelemetryConfig(
        enabled=_as_bool(telemetry_data.get("enabled"), False),
        service_name=telemetry_data.get("service_name", "unified-save"),
        otlp_endpoint=telemetry_data.get("otlp_endpoint"),
        console_export=_as_bool(telemetry_data.get("console_export"), False),
    )

    return UnifiedSaveConfig(
        settings=settings,
        autosave=autosave,
        backend=backend,
        server=server,
        telemetry=telemetry,
    )


def load_config(path: str | Path) -> UnifiedSaveConfig:
    """Load configuration from YAML file."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    return parse_config(raw or {})


def create_default_config() -> str:
    """Generate default configuration YAML."""
    return """# Unified Save Configuration

settings:
  save_directory: Saves
  file_extension: .save
  pretty_print: true
  schema_version: 1
  use_save_slots: true
  max_slots: 3
  manual_prefix: save
  autosave_prefix: autosave

autosave:
  default_slot_key: autosave
  load_on_start: false
  save_on_quit: true
  save_on_pause: false
  interval_seconds: 0   # 0 disables interval auto-save

# Slot storage
backend:
  kind: file            # file | sqlite | memory | http | null
  # path: ${HOME}/.local/share/mygame/Saves
  # url: http://localhost:8767

# Slot server (unified-save serve)
server:
  host: 127.0.0.1
  port: 8767

telemetry:
  enabled: false
  # otlp_endpoint: http://localhost:4317
"""
