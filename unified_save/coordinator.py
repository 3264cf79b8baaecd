"""
Save Coordinator

Façade over the registry, assembler and slot backend. Owns the
auto-save policy and the coordinator lifecycle:

    UNINITIALIZED -> READY -> SHUTTING_DOWN

Operations never raise for configuration, subsystem or backend errors;
they log and return a failure value instead.
"""

import asyncio
import logging
import weakref
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional, List, Dict, Any, Callable, Union

from .adapter import SubsystemAdapter
from .assembler import SnapshotAssembler, RestoreReport
from .backends.base import SlotBackend
from .config import SaveSettings, AutoSaveConfig
from .errors import SnapshotFormatError
from .events import SaveEvents, BEFORE_SAVE, AFTER_SAVE, BEFORE_LOAD, AFTER_LOAD
from .host import HostContext, BootstrapSignal
from .migrations import SnapshotMigrator
from .registry import SaveableRegistry
from .slots import SlotPolicy
from .snapshot.codec import PayloadCodecRegistry
from .snapshot.models import SnapshotMetadata, UnifiedSnapshot, read_metadata
from .telemetry import SaveSpan

logger = logging.getLogger("unified_save.coordinator")

MetadataProvider = Callable[[], Union[SnapshotMetadata, Dict[str, Any], None]]


class CoordinatorState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"


class SaveCoordinator:
    """
    Saves and loads the unified snapshot of every registered subsystem.

    The backend is injected; there is no process-wide backend.

    Example:
        coordinator = SaveCoordinator(backend=FileSlotBackend("Saves"))
        coordinator.register_system(InventoryAdapter(inventory))
        coordinator.initialize()
        await coordinator.save("save-0")
    """

    def __init__(
        self,
        settings: Optional[SaveSettings] = None,
        backend: Optional[SlotBackend] = None,
        codecs: Optional[PayloadCodecRegistry] = None,
        registry: Optional[SaveableRegistry] = None,
        autosave: Optional[AutoSaveConfig] = None,
        host: Optional[HostContext] = None,
        bootstrap: Optional[BootstrapSignal] = None,
        migrator: Optional[SnapshotMigrator] = None,
        metadata_provider: Optional[MetadataProvider] = None,
    ):
        self.slots = SlotPolicy(settings)
        self.backend = backend
        self.codecs = codecs or PayloadCodecRegistry()
        self.registry = registry or SaveableRegistry()
        self.autosave = autosave or AutoSaveConfig()
        self.host = host
        self.bootstrap = bootstrap
        self.migrator = migrator or SnapshotMigrator(self.slots.schema_version)
        self.metadata_provider = metadata_provider

        self.events = SaveEvents()
        self.assembler = SnapshotAssembler(self.registry, self.codecs, pretty_print=self.slots.pretty_print)
        self.last_restore_report: Optional[RestoreReport] = None

        self._state = CoordinatorState.UNINITIALIZED
        self._countdown = 0.0
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
            weakref.WeakKeyDictionary()
        )
        self._tasks: set = set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == CoordinatorState.READY

    def initialize(self) -> bool:
        """
        Enter READY once a backend is available.

        Registers with the host context, arms the interval timer and
        schedules the startup auto-load for when bootstrap completes.
        """
        if self._state == CoordinatorState.SHUTTING_DOWN:
            logger.error("SaveCoordinator was shut down; create a new instance")
            return False
        if self._state == CoordinatorState.READY:
            return True
        if self.backend is None:
            logger.error("SaveCoordinator: no backend configured")
            return False

        if self.host is not None:
            self.host.register(SaveCoordinator, self)

        self._state = CoordinatorState.READY
        self._reset_countdown()
        logger.info(f"SaveCoordinator initialized with backend {self.backend.describe()}")

        if self.autosave.load_on_start:
            if self.bootstrap is None or self.bootstrap.is_ready:
                self._spawn(self._startup_load(), run_inline=True)
            else:
                self.bootstrap.subscribe(self._startup_load)
        return True

    def shutdown(self) -> None:
        """Deregister, clear the registry and reject further operations."""
        if self._state == CoordinatorState.SHUTTING_DOWN:
            return
        if self.host is not None:
            self.host.unregister(SaveCoordinator)
        if self.bootstrap is not None:
            self.bootstrap.unsubscribe(self._startup_load)
        self.registry.clear()
        self._state = CoordinatorState.SHUTTING_DOWN
        logger.info("SaveCoordinator shut down")

    async def aclose(self) -> None:
        """Shut down and release backend resources."""
        self.shutdown()
        if self.backend is not None:
            await self.backend.aclose()

    def _check_ready(self, operation: str) -> bool:
        if self._state != CoordinatorState.READY:
            logger.error(f"Cannot {operation}: SaveCoordinator not initialized")
            return False
        if self.backend is None:
            logger.error(f"Cannot {operation}: no backend configured")
            return False
        return True

    # =========================================================================
    # Registry
    # =========================================================================

    def register_system(self, adapter: Optional[SubsystemAdapter]) -> bool:
        if self._state == CoordinatorState.SHUTTING_DOWN:
            logger.warning("Cannot register system: SaveCoordinator is shutting down")
            return False
        if not self.registry.register(adapter):
            return False
        try:
            adapter.register_codecs(self.codecs)
        except Exception as e:
            logger.error(f"Codec registration failed for {adapter.system_id}: {e}")
        return True

    def unregister_system(self, adapter: Union[SubsystemAdapter, str, None]) -> bool:
        return self.registry.unregister(adapter)

    def get_system(self, system_id: str) -> Optional[SubsystemAdapter]:
        return self.registry.lookup(system_id)

    def registered_systems(self) -> List[SubsystemAdapter]:
        return self.registry.ordered()

    # =========================================================================
    # Snapshot
    # =========================================================================

    def capture_snapshot(self) -> UnifiedSnapshot:
        with SaveSpan.capture(len(self.registry)):
            return self.assembler.capture(self.slots.schema_version)

    def restore_snapshot(self, snapshot: Optional[UnifiedSnapshot]) -> RestoreReport:
        entry_count = len(snapshot.entries) if snapshot is not None else 0
        with SaveSpan.restore(entry_count) as span:
            report = self.assembler.restore(snapshot)
            span.set_attribute("save.success", report.success)
        self.last_restore_report = report
        return report

    def _build_metadata(self, snapshot: UnifiedSnapshot, slot_key: str) -> SnapshotMetadata:
        stamp = {"slot_key": slot_key, "captured_at": snapshot.captured_at}
        provided = None
        if self.metadata_provider is not None:
            try:
                provided = self.metadata_provider()
            except Exception as e:
                logger.error(f"Metadata provider failed: {e}")

        if isinstance(provided, SnapshotMetadata):
            return provided.model_copy(update=stamp)
        if isinstance(provided, dict):
            try:
                return SnapshotMetadata.model_validate({**provided, **stamp})
            except ValueError as e:
                logger.error(f"Invalid metadata from provider: {e}")
        return SnapshotMetadata(**stamp)

    # =========================================================================
    # Slot operations
    # =========================================================================

    def _slot_lock(self, slot_key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.get(loop)
        if locks is None:
            locks = self._locks[loop] = {}
        lock = locks.get(slot_key)
        if lock is None:
            lock = locks[slot_key] = asyncio.Lock()
        return lock

    async def save(self, slot_key: str) -> bool:
        """Capture every subsystem and write the snapshot to a slot."""
        if not self._check_ready("save"):
            return False

        async with self._slot_lock(slot_key):
            with SaveSpan.save(slot_key, self.backend.describe()) as span:
                self.events.emit(BEFORE_SAVE, slot_key)
                success = False
                try:
                    snapshot = self.capture_snapshot()
                    snapshot.metadata = self._build_metadata(snapshot, slot_key)
                    data = snapshot.to_json(pretty=self.slots.pretty_print)
                    with SaveSpan.backend("save", slot_key, self.backend.name):
                        success = await self.backend.save(slot_key, data)
                except Exception as e:
                    logger.error(f"Save to '{slot_key}' failed: {e}")

                for adapter in self.registry.ordered():
                    try:
                        adapter.on_after_save(success)
                    except Exception as e:
                        logger.error(f"on_after_save failed for {adapter.system_id}: {e}")

                span.set_attribute("save.success", success)
                self.events.emit(AFTER_SAVE, slot_key, success)

        if success:
            logger.info(f"Saved slot: {slot_key}")
        return success

    async def load(self, slot_key: str) -> bool:
        """Read a slot and restore every registered subsystem from it."""
        if not self._check_ready("load"):
            return False

        async with self._slot_lock(slot_key):
            with SaveSpan.load(slot_key, self.backend.describe()) as span:
                self.events.emit(BEFORE_LOAD, slot_key)
                success = await self._load_locked(slot_key)
                span.set_attribute("save.success", success)
                self.events.emit(AFTER_LOAD, slot_key, success)

        if success:
            logger.info(f"Loaded slot: {slot_key}")
        return success

    async def _load_locked(self, slot_key: str) -> bool:
        try:
            with SaveSpan.backend("load", slot_key, self.backend.name):
                raw = await self.backend.load(slot_key)
        except Exception as e:
            logger.error(f"Reading slot '{slot_key}' failed: {e}")
            return False

        if raw is None:
            # Missing slot never touches subsystem state
            logger.warning(f"No save data found for slot: {slot_key}")
            return False

        try:
            raw = self.migrator.migrate_document(raw)
            snapshot = UnifiedSnapshot.from_json(raw)
        except SnapshotFormatError as e:
            logger.error(f"Unreadable save data in slot '{slot_key}': {e}")
            return False
        except Exception as e:
            logger.error(f"Migrating slot '{slot_key}' failed: {e}")
            return False

        return self.restore_snapshot(snapshot).success

    async def exists(self, slot_key: str) -> bool:
        if not self._check_ready("check slot"):
            return False
        try:
            return await self.backend.exists(slot_key)
        except Exception as e:
            logger.error(f"Exists check for '{slot_key}' failed: {e}")
            return False

    async def delete(self, slot_key: str) -> bool:
        """Delete a slot; deleting an absent slot succeeds."""
        if not self._check_ready("delete"):
            return False
        async with self._slot_lock(slot_key):
            try:
                with SaveSpan.backend("delete", slot_key, self.backend.name):
                    return await self.backend.delete(slot_key)
            except Exception as e:
                logger.error(f"Delete of '{slot_key}' failed: {e}")
                return False

    async def metadata(self, slot_key: str) -> Optional[SnapshotMetadata]:
        """Metadata of a stored slot, or None if absent or unreadable."""
        if not self._check_ready("read metadata"):
            return None
        try:
            raw = await self.backend.load(slot_key)
        except Exception as e:
            logger.error(f"Reading slot '{slot_key}' failed: {e}")
            return None
        if raw is None:
            return None
        try:
            return read_metadata(raw)
        except SnapshotFormatError as e:
            logger.error(f"Unreadable metadata in slot '{slot_key}': {e}")
            return None

    async def list_slots(self, prefix: Optional[str] = None) -> List[str]:
        if not self._check_ready("list slots"):
            return []
        try:
            return await self.backend.list_keys(prefix)
        except Exception as e:
            logger.error(f"Listing slots failed: {e}")
            return []

    # Indexed slots

    async def save_slot(self, index: int) -> bool:
        """Save to the manual slot at index (SlotIndexError if out of range)."""
        return await self.save(self.slots.manual_key(index))

    async def load_slot(self, index: int) -> bool:
        return await self.load(self.slots.manual_key(index))

    def save_blocking(self, slot_key: Optional[str] = None) -> bool:
        """
        Run a full save to completion before returning.

        Used on quit, when no further ticks are guaranteed. Called from
        inside a running loop, the save runs on a helper thread with its
        own loop.
        """
        slot_key = slot_key or self.autosave.default_slot_key
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.save(slot_key))

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="unified-save") as pool:
            return pool.submit(asyncio.run, self.save(slot_key)).result()

    # =========================================================================
    # Auto-save
    # =========================================================================

    def _reset_countdown(self) -> None:
        self._countdown = max(self.autosave.interval_seconds, 0.0)

    @property
    def time_until_autosave(self) -> Optional[float]:
        """Seconds until the next interval auto-save; None when disabled."""
        if self.autosave.interval_seconds <= 0:
            return None
        return max(self._countdown, 0.0)

    def tick(self, elapsed_seconds: float) -> Optional[asyncio.Task]:
        """
        Advance the interval timer.

        On expiry the timer re-arms and a save of the default slot is
        scheduled on the running loop; the tick itself never blocks.
        """
        if not self.is_ready or self.autosave.interval_seconds <= 0:
            return None
        self._countdown -= elapsed_seconds
        if self._countdown > 0:
            return None
        self._reset_countdown()
        logger.debug("Interval auto-save triggered")
        return self._spawn(self.save(self.autosave.default_slot_key))

    def on_pause(self, paused: bool) -> Optional[asyncio.Task]:
        if not paused or not self.autosave.save_on_pause or not self.is_ready:
            return None
        logger.debug("Pause auto-save triggered")
        return self._spawn(self.save(self.autosave.default_slot_key))

    def on_quit(self) -> bool:
        if not self.autosave.save_on_quit or not self.is_ready:
            return False
        logger.info("Quit auto-save triggered")
        return self.save_blocking(self.autosave.default_slot_key)

    async def _startup_load(self) -> bool:
        if not self.is_ready:
            return False
        slot_key = self.autosave.default_slot_key
        if not await self.exists(slot_key):
            logger.info(f"No auto-save at '{slot_key}'; skipping startup load")
            return False
        return await self.load(slot_key)

    def _spawn(self, coro, run_inline: bool = False) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if run_inline:
                asyncio.run(coro)
            else:
                coro.close()
                logger.warning("No running event loop; auto-save skipped")
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
