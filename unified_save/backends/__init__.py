"""
Slot Backends

Pluggable persistence for serialized snapshots:
- file (default): one file per slot in a directory
- sqlite: single database file
- memory: in-process dict (for testing)
- http: remote slot server
- null: no-op, used when nothing is configured
"""

from pathlib import Path
from typing import Optional

from ..config import BackendConfig, SaveSettings
from .base import SlotBackend
from .file import FileSlotBackend, sanitize_key
from .http import HTTPSlotBackend
from .memory import MemoryBackend
from .null import NullBackend
from .sqlite import SQLiteSlotBackend

BACKEND_KINDS = ("file", "sqlite", "memory", "http", "null")


def create_backend(
    config: Optional[BackendConfig] = None,
    settings: Optional[SaveSettings] = None,
) -> SlotBackend:
    """Create the backend described by config."""
    config = config or BackendConfig()
    settings = settings or SaveSettings()

    if config.kind == "file":
        return FileSlotBackend(
            directory=config.path or settings.save_directory,
            file_extension=settings.file_extension,
            pretty_print=settings.pretty_print,
        )
    elif config.kind == "sqlite":
        db_path = config.path or str(Path(settings.save_directory) / "saves.db")
        return SQLiteSlotBackend(db_path=db_path)
    elif config.kind == "memory":
        return MemoryBackend()
    elif config.kind == "http":
        return HTTPSlotBackend(base_url=config.url, timeout=config.timeout)
    elif config.kind == "null":
        return NullBackend()
    raise ValueError(f"Unknown backend kind: {config.kind} (expected one of {', '.join(BACKEND_KINDS)})")


__all__ = [
    "BACKEND_KINDS",
    "SlotBackend",
    "FileSlotBackend",
    "HTTPSlotBackend",
    "MemoryBackend",
    "NullBackend",
    "SQLiteSlotBackend",
    "create_backend",
    "sanitize_key",
]
