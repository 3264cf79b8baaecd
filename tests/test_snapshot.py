"""Tests for the snapshot document and the payload codec table."""

import json
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from unified_save import (
    PayloadCodecRegistry,
    SnapshotEntry,
    SnapshotMetadata,
    UnifiedSnapshot,
    UnknownPayloadKindError,
    PayloadDecodeError,
    PayloadEncodeError,
    SnapshotFormatError,
)
from unified_save.snapshot import read_format_version, read_metadata


class Inventory(BaseModel):
    items: list = []
    gold: int = 0


@dataclass
class Position:
    x: float
    y: float


@dataclass
class Waypoint:
    name: str
    at: Position


@dataclass
class Route:
    stops: list[Waypoint]
    start: Position


# =============================================================================
# Codec
# =============================================================================

def test_json_kind_builtin():
    """Test the default json codec."""
    codecs = PayloadCodecRegistry()
    assert "json" in codecs

    payload = codecs.encode("json", {"hp": 10, "tags": ["a"]})
    assert codecs.decode("json", payload) == {"hp": 10, "tags": ["a"]}


def test_unknown_kind():
    """Test that resolving an unregistered kind raises."""
    codecs = PayloadCodecRegistry()

    with pytest.raises(UnknownPayloadKindError) as exc:
        codecs.decode("QuestLog", "{}")
    assert exc.value.kind == "QuestLog"
    assert isinstance(exc.value, KeyError)


def test_register_model():
    """Test pydantic model codecs."""
    codecs = PayloadCodecRegistry()
    kind = codecs.register_model(Inventory)
    assert kind == "Inventory"

    payload = codecs.encode(kind, Inventory(items=["sword"], gold=5))
    restored = codecs.decode(kind, payload)
    assert isinstance(restored, Inventory)
    assert restored.gold == 5


def test_register_dataclass():
    codecs = PayloadCodecRegistry()
    kind = codecs.register_dataclass(Position, kind="pos")

    restored = codecs.decode(kind, codecs.encode(kind, Position(1.5, -2.0)))
    assert restored == Position(1.5, -2.0)

    with pytest.raises(TypeError):
        codecs.register_dataclass(Inventory)


def test_register_dataclass_nested():
    """Test that nested dataclasses decode as instances."""
    codecs = PayloadCodecRegistry()
    kind = codecs.register_dataclass(Route)
    route = Route(stops=[Waypoint("camp", Position(0.0, 1.0))], start=Position(2.0, 3.0))

    restored = codecs.decode(kind, codecs.encode(kind, route, pretty=True))

    assert restored == route
    assert isinstance(restored.stops[0].at, Position)


def test_codec_errors_are_wrapped():
    """Test that codec failures surface as codec errors."""
    codecs = PayloadCodecRegistry()
    codecs.register_model(Inventory)

    with pytest.raises(PayloadDecodeError):
        codecs.decode("json", "{not json")
    with pytest.raises(PayloadDecodeError):
        codecs.decode("Inventory", '{"gold": "lots"}')
    with pytest.raises(PayloadEncodeError):
        codecs.encode("json", object())


def test_unregister_and_kinds():
    codecs = PayloadCodecRegistry(include_json=False)
    assert len(codecs) == 0

    codecs.register("text", lambda value, pretty: str(value), lambda payload: payload)
    assert codecs.kinds() == ["text"]
    assert codecs.unregister("text") is True
    assert codecs.unregister("text") is False

    with pytest.raises(ValueError):
        codecs.register("", lambda v, p: "", lambda s: s)


# =============================================================================
# Document
# =============================================================================

def test_wire_format_is_camel_case():
    """Test the stored document field names."""
    snapshot = UnifiedSnapshot(
        entries=[SnapshotEntry(subsystem_id="quests", payload_kind="json", payload="[]")],
        metadata=SnapshotMetadata(slot_key="save-0", play_time_seconds=12.5),
    )
    data = json.loads(snapshot.to_json())

    assert data["formatVersion"] == 1
    assert "capturedAt" in data
    assert data["entries"][0] == {"subsystemId": "quests", "payloadKind": "json", "payload": "[]"}
    assert data["metadata"]["slotKey"] == "save-0"
    assert data["metadata"]["playTimeSeconds"] == 12.5


def test_document_round_trip():
    snapshot = UnifiedSnapshot(
        entries=[
            SnapshotEntry(subsystem_id="a", payload_kind="json", payload="1"),
            SnapshotEntry(subsystem_id="b", payload_kind="json", payload="2"),
        ],
    )
    restored = UnifiedSnapshot.from_json(snapshot.to_json(pretty=True))

    assert restored == snapshot
    assert restored.subsystem_ids() == ["a", "b"]
    assert restored.find_entry("b").payload == "2"
    assert restored.find_entry("c") is None


def test_duplicate_entries_rejected():
    """Test that a snapshot holds at most one entry per subsystem."""
    snapshot = UnifiedSnapshot()
    snapshot.add_entry(SnapshotEntry(subsystem_id="a", payload_kind="json", payload="1"))
    with pytest.raises(ValueError):
        snapshot.add_entry(SnapshotEntry(subsystem_id="a", payload_kind="json", payload="2"))

    raw = json.dumps({
        "formatVersion": 1,
        "entries": [
            {"subsystemId": "a", "payloadKind": "json", "payload": "1"},
            {"subsystemId": "a", "payloadKind": "json", "payload": "2"},
        ],
    })
    with pytest.raises(SnapshotFormatError):
        UnifiedSnapshot.from_json(raw)


def test_invalid_document():
    with pytest.raises(SnapshotFormatError):
        UnifiedSnapshot.from_json("garbage")
    with pytest.raises(SnapshotFormatError):
        UnifiedSnapshot.from_dict({"entries": "nope"})


def test_read_format_version():
    """Test reading the version without parsing entries."""
    assert read_format_version('{"formatVersion": 3, "entries": "anything"}') == 3
    assert read_format_version('{"entries": []}') == 1

    with pytest.raises(SnapshotFormatError):
        read_format_version('{"formatVersion": true}')
    with pytest.raises(SnapshotFormatError):
        read_format_version('{"formatVersion": "2"}')
    with pytest.raises(SnapshotFormatError):
        read_format_version("[1, 2]")


def test_read_metadata():
    raw = json.dumps({"entries": "skipped", "metadata": {"slotKey": "save-1", "playerName": "Ada"}})
    metadata = read_metadata(raw)

    assert metadata.slot_key == "save-1"
    assert metadata.player_name == "Ada"
    assert read_metadata("{}") == SnapshotMetadata()
