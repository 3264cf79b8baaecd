"""Tests for snapshot migrations."""

import json

import pytest

from unified_save import SnapshotMigrator, SnapshotFormatError


def test_migration_chain():
    """Test that steps run in order and bump the version."""
    migrator = SnapshotMigrator(target_version=3)
    migrator.register(1, lambda d: {**d, "seenV1": True})
    migrator.register(2, lambda d: {**d, "seenV2": d.get("formatVersion")})

    migrated = migrator.migrate({"formatVersion": 1, "entries": []})

    assert migrated["formatVersion"] == 3
    assert migrated["seenV1"] is True
    assert migrated["seenV2"] == 2


def test_migration_gap():
    migrator = SnapshotMigrator(target_version=3)
    migrator.register(2, lambda d: d)

    with pytest.raises(SnapshotFormatError):
        migrator.migrate({"formatVersion": 1})


def test_migration_current_or_newer_untouched():
    migrator = SnapshotMigrator(target_version=1)
    raw = json.dumps({"formatVersion": 5, "entries": []})

    assert migrator.migrate_document(raw) == raw
    assert migrator.migrate({"formatVersion": 5}) == {"formatVersion": 5}
    assert not migrator.needs_migration(1)


def test_migration_step_must_be_below_target():
    migrator = SnapshotMigrator(target_version=2)
    with pytest.raises(ValueError):
        migrator.register(2, lambda d: d)


def test_migrate_document_rewrites_old_document():
    migrator = SnapshotMigrator(target_version=2)

    @migrator.step(1)
    def add_metadata(data):
        data.setdefault("metadata", {})
        return data

    migrated = json.loads(migrator.migrate_document(json.dumps({"formatVersion": 1, "entries": []})))

    assert migrated["formatVersion"] == 2
    assert migrated["metadata"] == {}
