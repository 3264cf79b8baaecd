"""
Snapshot Assembler

Builds a unified snapshot from the registry and applies one back.

Capture and restore are best-effort: a failing subsystem is logged and
left out (capture) or marked failed (restore), and the pass continues.
Subsystems restored before a later failure keep their restored state.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from .registry import SaveableRegistry
from .snapshot.codec import PayloadCodecRegistry
from .snapshot.models import (
    CURRENT_FORMAT_VERSION,
    SnapshotEntry,
    UnifiedSnapshot,
    utc_timestamp,
)

logger = logging.getLogger("unified_save.assembler")


class RestoreStatus(Enum):
    """Per-subsystem restore outcome."""
    RESTORED = "restored"
    FAILED = "failed"
    MISSING = "missing"     # No entry in the snapshot


@dataclass
class SubsystemResult:
    system_id: str
    status: RestoreStatus
    error: Optional[str] = None


@dataclass
class CaptureReport:
    """What happened to each subsystem during a capture."""
    captured: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class RestoreReport:
    """
    Outcome of applying a snapshot.

    success is the AND over every registered subsystem that had an
    entry; subsystems without an entry and orphan entries do not count.
    """
    results: List[SubsystemResult] = field(default_factory=list)
    orphaned: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and all(r.status != RestoreStatus.FAILED for r in self.results)

    @property
    def restored_count(self) -> int:
        return sum(1 for r in self.results if r.status == RestoreStatus.RESTORED)

    @property
    def failed_ids(self) -> List[str]:
        return [r.system_id for r in self.results if r.status == RestoreStatus.FAILED]

    @property
    def missing_ids(self) -> List[str]:
        return [r.system_id for r in self.results if r.status == RestoreStatus.MISSING]

    def result_for(self, system_id: str) -> Optional[SubsystemResult]:
        for result in self.results:
            if result.system_id == system_id:
                return result
        return None

    def __bool__(self) -> bool:
        return self.success


class SnapshotAssembler:
    """Drives capture/restore over a registry using a codec table."""

    def __init__(
        self,
        registry: SaveableRegistry,
        codecs: PayloadCodecRegistry,
        pretty_print: bool = False,
    ):
        self.registry = registry
        self.codecs = codecs
        self.pretty_print = pretty_print
        self.last_capture: Optional[CaptureReport] = None

    # =========================================================================
    # Capture
    # =========================================================================

    def capture(self, format_version: int = CURRENT_FORMAT_VERSION) -> UnifiedSnapshot:
        """
        Capture every registered subsystem into a new snapshot.

        Never raises for subsystem errors; the snapshot may be partial.
        """
        snapshot = UnifiedSnapshot(format_version=format_version, captured_at=utc_timestamp())
        report = CaptureReport()

        for adapter in self.registry.ordered():
            system_id = adapter.system_id
            try:
                adapter.on_before_save()
                state = adapter.capture_snapshot()
                if state is None:
                    report.skipped.append(system_id)
                    logger.debug(f"Nothing to capture for system: {system_id}")
                    continue

                payload = self.codecs.encode(adapter.payload_kind, state, pretty=self.pretty_print)
                snapshot.add_entry(SnapshotEntry(
                    subsystem_id=system_id,
                    payload_kind=adapter.payload_kind,
                    payload=payload,
                ))
                report.captured.append(system_id)
                logger.debug(f"Captured snapshot for system: {system_id}")
            except Exception as e:
                report.failed.append(system_id)
                logger.error(f"Failed to capture {system_id}: {e}")

        self.last_capture = report
        logger.info(
            f"Captured unified snapshot with {len(snapshot.entries)} systems"
            + (f" ({len(report.failed)} failed)" if report.failed else "")
        )
        return snapshot

    # =========================================================================
    # Restore
    # =========================================================================

    def restore(self, snapshot: Optional[UnifiedSnapshot]) -> RestoreReport:
        """
        Apply a snapshot to every registered subsystem.

        All before-load hooks run before any restore; every registered
        subsystem receives exactly one after-load notification.
        """
        report = RestoreReport()
        if snapshot is None:
            logger.warning("Cannot restore null snapshot.")
            report.error = "no snapshot"
            return report

        adapters = self.registry.ordered()

        for adapter in adapters:
            try:
                adapter.on_before_load()
            except Exception as e:
                logger.error(f"on_before_load failed for {adapter.system_id}: {e}")

        registered = set()
        for adapter in adapters:
            registered.add(adapter.system_id)
            result = self._restore_one(adapter, snapshot)
            report.results.append(result)
            self._after_load(adapter, result.status == RestoreStatus.RESTORED)

        report.orphaned = [sid for sid in snapshot.subsystem_ids() if sid not in registered]
        if report.orphaned:
            logger.warning(
                f"Snapshot has entries for unregistered systems: {', '.join(report.orphaned)}"
            )

        logger.info(
            f"Restored {report.restored_count}/{len(adapters)} systems from unified snapshot"
        )
        return report

    def _restore_one(self, adapter, snapshot: UnifiedSnapshot) -> SubsystemResult:
        system_id = adapter.system_id
        entry = snapshot.find_entry(system_id)
        if entry is None:
            logger.debug(f"No data for system '{system_id}' in snapshot.")
            return SubsystemResult(system_id, RestoreStatus.MISSING)

        try:
            state = self.codecs.decode(entry.payload_kind, entry.payload)
            success = bool(adapter.restore_snapshot(state))
        except Exception as e:
            logger.error(f"Failed to restore {system_id}: {e}")
            return SubsystemResult(system_id, RestoreStatus.FAILED, str(e))

        if not success:
            logger.warning(f"System '{system_id}' reported restore failure.")
            return SubsystemResult(system_id, RestoreStatus.FAILED, "restore reported failure")

        logger.debug(f"Restored snapshot for system: {system_id}")
        return SubsystemResult(system_id, RestoreStatus.RESTORED)

    @staticmethod
    def _after_load(adapter, success: bool) -> None:
        try:
            adapter.on_after_load(success)
        except Exception as e:
            logger.error(f"on_after_load failed for {adapter.system_id}: {e}")
