"""Tests for the Snapshot Assembler."""

import json

import pytest

from unified_save import (
    PayloadCodecRegistry,
    RestoreStatus,
    SaveableRegistry,
    SnapshotAssembler,
    SnapshotEntry,
    UnifiedSnapshot,
)


@pytest.fixture
def registry():
    return SaveableRegistry()


@pytest.fixture
def assembler(registry):
    return SnapshotAssembler(registry, PayloadCodecRegistry())


def test_capture_in_priority_order(registry, assembler, make_adapter):
    """Test that entries follow priority order."""
    registry.register(make_adapter("c", priority=30, state={"v": 3}))
    registry.register(make_adapter("a", priority=10, state={"v": 1}))
    registry.register(make_adapter("b", priority=20, state={"v": 2}))

    snapshot = assembler.capture()

    assert snapshot.subsystem_ids() == ["a", "b", "c"]
    assert json.loads(snapshot.find_entry("b").payload) == {"v": 2}
    assert all(e.payload_kind == "json" for e in snapshot.entries)


def test_restore_in_priority_order(registry, assembler, make_adapter, journal):
    for system_id, priority in [("c", 30), ("a", 10), ("b", 20)]:
        registry.register(make_adapter(system_id, priority=priority, state=1, journal=journal))

    snapshot = assembler.capture()
    journal.clear()
    assembler.restore(snapshot)

    restores = [sid for sid, event, *_ in journal if event == "restore"]
    assert restores == ["a", "b", "c"]


def test_capture_restore_round_trip(registry, assembler, make_adapter):
    """Test that capture then restore reproduces each subsystem's state."""
    quests = make_adapter("quests", state={"active": ["q1"], "done": []})
    stats = make_adapter("stats", state={"hp": 42, "buffs": {"haste": 3}})
    registry.register(quests)
    registry.register(stats)

    snapshot = assembler.capture()
    quests.state = None
    stats.state = {"hp": 1}

    report = assembler.restore(snapshot)

    assert report.success
    assert quests.state == {"active": ["q1"], "done": []}
    assert stats.state == {"hp": 42, "buffs": {"haste": 3}}


def test_capture_failure_is_partial(registry, assembler, make_adapter):
    """Test that one failing capture does not abort the batch."""
    registry.register(make_adapter("a", priority=1, capture_error=RuntimeError("boom")))
    registry.register(make_adapter("b", priority=2, state={"ok": True}))

    snapshot = assembler.capture()

    assert snapshot.subsystem_ids() == ["b"]
    assert assembler.last_capture.failed == ["a"]
    assert assembler.last_capture.captured == ["b"]


def test_capture_skips_none(registry, assembler, make_adapter):
    empty = make_adapter("empty", state=None)
    registry.register(empty)

    snapshot = assembler.capture()

    assert snapshot.entries == []
    assert assembler.last_capture.skipped == ["empty"]
    assert empty.events("before_save") == [("before_save",)]


def test_before_load_runs_before_any_restore(registry, assembler, make_adapter, journal):
    """Test that every before-load hook runs first, even without an entry."""
    registry.register(make_adapter("a", priority=1, state=1, journal=journal))
    registry.register(make_adapter("b", priority=2, state=2, journal=journal))
    snapshot = assembler.capture()
    registry.register(make_adapter("late", priority=3, journal=journal))
    journal.clear()

    assembler.restore(snapshot)

    events = [(sid, event) for sid, event, *_ in journal]
    assert events[:3] == [("a", "before_load"), ("b", "before_load"), ("late", "before_load")]
    assert ("late", "restore") not in events


def test_missing_entry_is_not_fatal(registry, assembler, make_adapter):
    """Test that a subsystem without data gets after_load(False) only."""
    registry.register(make_adapter("a", state={"x": 1}))
    snapshot = assembler.capture()
    newcomer = make_adapter("newcomer", state={"keep": True})
    registry.register(newcomer)

    report = assembler.restore(snapshot)

    assert report.success
    assert report.missing_ids == ["newcomer"]
    assert newcomer.state == {"keep": True}
    assert newcomer.events("after_load") == [("after_load", False)]


def test_restore_failure_keeps_earlier_state(registry, assembler, make_adapter):
    """Test best-effort restore with an aggregate failure."""
    first = make_adapter("first", priority=1, state="one")
    failing = make_adapter("failing", priority=2, state="two", restore_result=False)
    last = make_adapter("last", priority=3, state="three")
    for adapter in (first, failing, last):
        registry.register(adapter)
    snapshot = assembler.capture()
    first.state = last.state = None

    report = assembler.restore(snapshot)

    assert not report.success
    assert report.failed_ids == ["failing"]
    assert first.state == "one"
    assert last.state == "three"
    assert failing.events("after_load") == [("after_load", False)]
    assert last.events("after_load") == [("after_load", True)]


def test_unknown_payload_kind_fails_one_subsystem(registry, assembler, make_adapter):
    a = make_adapter("a")
    b = make_adapter("b")
    registry.register(a)
    registry.register(b)
    snapshot = UnifiedSnapshot(entries=[
        SnapshotEntry(subsystem_id="a", payload_kind="Vanished", payload="{}"),
        SnapshotEntry(subsystem_id="b", payload_kind="json", payload='{"ok": 1}'),
    ])

    report = assembler.restore(snapshot)

    assert report.result_for("a").status == RestoreStatus.FAILED
    assert report.result_for("b").status == RestoreStatus.RESTORED
    assert b.state == {"ok": 1}
    assert not report


def test_orphan_entries_are_reported(registry, assembler, make_adapter):
    """Test that entries for unregistered subsystems do not affect success."""
    registry.register(make_adapter("inventory"))
    snapshot = UnifiedSnapshot(entries=[
        SnapshotEntry(subsystem_id="quests", payload_kind="json", payload="[]"),
        SnapshotEntry(subsystem_id="inventory", payload_kind="json", payload="[]"),
    ])

    report = assembler.restore(snapshot)

    assert report.success
    assert report.orphaned == ["quests"]
    assert report.restored_count == 1


def test_restore_none(assembler, make_adapter, registry):
    adapter = make_adapter("a")
    registry.register(adapter)

    report = assembler.restore(None)

    assert not report.success
    assert report.error == "no snapshot"
    assert adapter.calls == []
