"""
Snapshot Migrations

Upgrades stored documents written by an older schema version before they
are validated. Steps operate on the raw wire dict (camelCase keys).
"""

import json
import logging
from typing import Callable, Dict, Any

from .errors import SnapshotFormatError
from .snapshot.models import CURRENT_FORMAT_VERSION, read_format_version

logger = logging.getLogger("unified_save.migrations")

MigrationStep = Callable[[Dict[str, Any]], Dict[str, Any]]


class SnapshotMigrator:
    """
    Chain of from_version -> from_version + 1 steps.

    Each step receives the document at its version and returns the
    document at the next version; formatVersion is bumped after each
    step.
    """

    def __init__(self, target_version: int = CURRENT_FORMAT_VERSION):
        self.target_version = target_version
        self._steps: Dict[int, MigrationStep] = {}

    def register(self, from_version: int, step: MigrationStep) -> None:
        if from_version >= self.target_version:
            raise ValueError(
                f"Migration from v{from_version} is not below target v{self.target_version}"
            )
        if from_version in self._steps:
            logger.warning(f"Replacing migration step from v{from_version}")
        self._steps[from_version] = step

    def step(self, from_version: int) -> Callable[[MigrationStep], MigrationStep]:
        """Decorator form of register."""
        def decorator(fn: MigrationStep) -> MigrationStep:
            self.register(from_version, fn)
            return fn
        return decorator

    def needs_migration(self, version: int) -> bool:
        return version < self.target_version

    def migrate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply steps until the document reaches the target version."""
        version = data.get("formatVersion", 1)
        if version > self.target_version:
            logger.warning(
                f"Snapshot version v{version} is newer than supported v{self.target_version}; loading as-is"
            )
            return data

        while version < self.target_version:
            step = self._steps.get(version)
            if step is None:
                raise SnapshotFormatError(f"No migration registered from v{version}")
            data = step(dict(data))
            version += 1
            data["formatVersion"] = version
            logger.info(f"Migrated snapshot to v{version}")
        return data

    def migrate_document(self, raw: str) -> str:
        """Migrate a serialized document; returns it unchanged when current."""
        version = read_format_version(raw)
        if not self.needs_migration(version):
            if version > self.target_version:
                logger.warning(
                    f"Snapshot version v{version} is newer than supported v{self.target_version}; loading as-is"
                )
            return raw
        return json.dumps(self.migrate(json.loads(raw)))
