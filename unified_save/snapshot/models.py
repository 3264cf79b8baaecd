"""
Unified Snapshot Models

Pydantic models for the persisted snapshot document. Attributes are
snake_case in Python and camelCase on the wire.
"""

import json
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..errors import SnapshotFormatError

CURRENT_FORMAT_VERSION = 1


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnapshotEntry(_WireModel):
    """One subsystem's serialized state inside a snapshot."""
    subsystem_id: str = Field(..., description="Adapter id the payload belongs to")
    payload_kind: str = Field(..., description="Codec tag used to decode the payload")
    payload: str = Field(..., description="Opaque serialized state")


class SnapshotMetadata(_WireModel):
    """Summary fields readable without decoding any entry."""
    slot_key: str = ""
    captured_at: str = ""
    play_time_seconds: float = 0.0
    player_name: str = ""
    location: str = ""
    custom_data: str = ""


class UnifiedSnapshot(_WireModel):
    """
    The root persisted unit.

    Entries keep capture order (priority order) and hold at most one
    entry per subsystem id.
    """
    format_version: int = CURRENT_FORMAT_VERSION
    captured_at: str = Field(default_factory=utc_timestamp)
    entries: List[SnapshotEntry] = Field(default_factory=list)
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)

    @field_validator("entries")
    @classmethod
    def _unique_subsystems(cls, entries: List[SnapshotEntry]) -> List[SnapshotEntry]:
        seen = set()
        for entry in entries:
            if entry.subsystem_id in seen:
                raise ValueError(f"Duplicate entry for subsystem '{entry.subsystem_id}'")
            seen.add(entry.subsystem_id)
        return entries

    def find_entry(self, subsystem_id: str) -> Optional[SnapshotEntry]:
        """Get the entry for a subsystem, if captured."""
        for entry in self.entries:
            if entry.subsystem_id == subsystem_id:
                return entry
        return None

    def has_entry(self, subsystem_id: str) -> bool:
        return self.find_entry(subsystem_id) is not None

    def subsystem_ids(self) -> List[str]:
        return [e.subsystem_id for e in self.entries]

    def add_entry(self, entry: SnapshotEntry) -> None:
        """Append an entry, rejecting a second entry for the same subsystem."""
        if self.has_entry(entry.subsystem_id):
            raise ValueError(f"Duplicate entry for subsystem '{entry.subsystem_id}'")
        self.entries.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        """Wire-format dict (camelCase keys)."""
        return self.model_dump(by_alias=True)

    def to_json(self, pretty: bool = False) -> str:
        return self.model_dump_json(by_alias=True, indent=2 if pretty else None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnifiedSnapshot":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SnapshotFormatError(f"Invalid snapshot document: {e}") from e

    @classmethod
    def from_json(cls, raw: str) -> "UnifiedSnapshot":
        """Rebuild a snapshot from a stored document."""
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise SnapshotFormatError(f"Invalid snapshot document: {e}") from e


# =============================================================================
# Lightweight reads
# =============================================================================

def _parse_document(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotFormatError("Snapshot document must be a JSON object")
    return data


def read_format_version(raw: str) -> int:
    """
    Read the schema version of a stored snapshot.

    Only the top-level document is parsed; entries are not validated,
    so this works on documents written by older or newer schemas.
    """
    data = _parse_document(raw)
    version = data.get("formatVersion", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise SnapshotFormatError(f"Invalid formatVersion: {version!r}")
    return version


def read_metadata(raw: str) -> SnapshotMetadata:
    """Read only the metadata block of a stored snapshot."""
    data = _parse_document(raw)
    try:
        return SnapshotMetadata.model_validate(data.get("metadata") or {})
    except ValidationError as e:
        raise SnapshotFormatError(f"Invalid snapshot metadata: {e}") from e
