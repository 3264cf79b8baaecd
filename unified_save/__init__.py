"""
Unified Save - Snapshot orchestration for distributed application state

Independent subsystems register adapters; the coordinator captures them
into one versioned snapshot and writes it to a pluggable slot backend.
"""

__version__ = "0.1.0"

from .adapter import SubsystemAdapter, CallbackAdapter, ModelAdapter
from .assembler import SnapshotAssembler, RestoreReport, RestoreStatus, CaptureReport
from .backends import (
    SlotBackend,
    FileSlotBackend,
    HTTPSlotBackend,
    MemoryBackend,
    NullBackend,
    SQLiteSlotBackend,
    create_backend,
)
from .config import UnifiedSaveConfig, SaveSettings, AutoSaveConfig, BackendConfig, load_config
from .coordinator import SaveCoordinator, CoordinatorState
from .errors import (
    UnifiedSaveError,
    SlotIndexError,
    UnknownPayloadKindError,
    PayloadEncodeError,
    PayloadDecodeError,
    SnapshotFormatError,
)
from .events import SaveEvents
from .host import HostContext, BootstrapSignal
from .migrations import SnapshotMigrator
from .registry import SaveableRegistry
from .slots import SlotPolicy, NO_ACTIVE_SLOT
from .snapshot import (
    JSON_KIND,
    PayloadCodecRegistry,
    SnapshotEntry,
    SnapshotMetadata,
    UnifiedSnapshot,
)

__all__ = [
    "__version__",
    "SubsystemAdapter",
    "CallbackAdapter",
    "ModelAdapter",
    "SnapshotAssembler",
    "RestoreReport",
    "RestoreStatus",
    "CaptureReport",
    "SlotBackend",
    "FileSlotBackend",
    "HTTPSlotBackend",
    "MemoryBackend",
    "NullBackend",
    "SQLiteSlotBackend",
    "create_backend",
    "UnifiedSaveConfig",
    "SaveSettings",
    "AutoSaveConfig",
    "BackendConfig",
    "load_config",
    "SaveCoordinator",
    "CoordinatorState",
    "UnifiedSaveError",
    "SlotIndexError",
    "UnknownPayloadKindError",
    "PayloadEncodeError",
    "PayloadDecodeError",
    "SnapshotFormatError",
    "SaveEvents",
    "HostContext",
    "BootstrapSignal",
    "SnapshotMigrator",
    "SaveableRegistry",
    "SlotPolicy",
    "NO_ACTIVE_SLOT",
    "JSON_KIND",
    "PayloadCodecRegistry",
    "SnapshotEntry",
    "SnapshotMetadata",
    "UnifiedSnapshot",
]
