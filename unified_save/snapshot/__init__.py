"""
Unified Snapshot

The persisted snapshot document and the payload codec table used to
encode and decode each subsystem's state.
"""

from .models import (
    CURRENT_FORMAT_VERSION,
    SnapshotEntry,
    SnapshotMetadata,
    UnifiedSnapshot,
    read_format_version,
    read_metadata,
    utc_timestamp,
)
from .codec import JSON_KIND, PayloadCodec, PayloadCodecRegistry

__all__ = [
    "CURRENT_FORMAT_VERSION",
    "SnapshotEntry",
    "SnapshotMetadata",
    "UnifiedSnapshot",
    "read_format_version",
    "read_metadata",
    "utc_timestamp",
    "JSON_KIND",
    "PayloadCodec",
    "PayloadCodecRegistry",
]
