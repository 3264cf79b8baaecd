"""
Saveable Registry

Ordered collection of subsystem adapters, unique by id and kept in
(priority, registration order) after every mutation.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Dict, List, Callable, Union

from .adapter import SubsystemAdapter

logger = logging.getLogger("unified_save.registry")

RegistryListener = Callable[[SubsystemAdapter], None]


@dataclass(frozen=True)
class _Registration:
    priority: int
    sequence: int
    adapter: SubsystemAdapter

    @property
    def sort_key(self) -> tuple:
        return (self.priority, self.sequence)


class SaveableRegistry:
    """
    Registry of saveable subsystems.

    Registration is fail-soft: a None adapter or a duplicate id is
    logged and ignored, never raised. Iteration always yields adapters
    in capture/restore order.
    """

    def __init__(self):
        self._entries: List[_Registration] = []
        self._by_id: Dict[str, _Registration] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()
        self._on_registered: List[RegistryListener] = []
        self._on_unregistered: List[RegistryListener] = []

    # =========================================================================
    # Mutation
    # =========================================================================

    def register(self, adapter: Optional[SubsystemAdapter]) -> bool:
        """Register an adapter. Returns False if it was ignored."""
        if adapter is None:
            logger.warning("Cannot register null system.")
            return False

        system_id = getattr(adapter, "system_id", None)
        if not system_id:
            logger.warning(f"Cannot register system without an id: {adapter!r}")
            return False

        with self._lock:
            if system_id in self._by_id:
                logger.warning(f"System '{system_id}' already registered. Skipping.")
                return False

            registration = _Registration(
                priority=adapter.priority,
                sequence=next(self._sequence),
                adapter=adapter,
            )
            self._entries.append(registration)
            self._entries.sort(key=lambda r: r.sort_key)
            self._by_id[system_id] = registration
            listeners = list(self._on_registered)

        logger.info(f"Registered saveable system: {system_id} (priority: {adapter.priority})")
        self._notify(listeners, adapter)
        return True

    def unregister(self, adapter: Union[SubsystemAdapter, str, None]) -> bool:
        """Remove an adapter (or id). Returns False if it was not registered."""
        if adapter is None:
            return False
        system_id = adapter if isinstance(adapter, str) else adapter.system_id

        with self._lock:
            registration = self._by_id.pop(system_id, None)
            if registration is None:
                return False
            self._entries.remove(registration)
            listeners = list(self._on_unregistered)

        logger.info(f"Unregistered saveable system: {system_id}")
        self._notify(listeners, registration.adapter)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._by_id.clear()

    # =========================================================================
    # Queries
    # =========================================================================

    def lookup(self, system_id: str) -> Optional[SubsystemAdapter]:
        """Get a registered adapter by id."""
        with self._lock:
            registration = self._by_id.get(system_id)
        return registration.adapter if registration else None

    def ordered(self) -> List[SubsystemAdapter]:
        """Snapshot of the adapters in capture/restore order."""
        with self._lock:
            return [r.adapter for r in self._entries]

    def keys(self) -> List[str]:
        return [a.system_id for a in self.ordered()]

    def __iter__(self):
        return iter(self.ordered())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, system_id: str) -> bool:
        with self._lock:
            return system_id in self._by_id

    # =========================================================================
    # Notifications
    # =========================================================================

    def on_registered(self, listener: RegistryListener) -> None:
        with self._lock:
            self._on_registered.append(listener)

    def on_unregistered(self, listener: RegistryListener) -> None:
        with self._lock:
            self._on_unregistered.append(listener)

    @staticmethod
    def _notify(listeners: List[RegistryListener], adapter: SubsystemAdapter) -> None:
        for listener in listeners:
            try:
                listener(adapter)
            except Exception as e:
                logger.error(f"Registry listener failed for {adapter.system_id}: {e}")
