"""
Slot Policy

Derives slot keys from save settings and tracks the active slot.
"""

import logging
from typing import Optional, List, Callable

from .config import SaveSettings
from .errors import SlotIndexError

logger = logging.getLogger("unified_save.slots")

NO_ACTIVE_SLOT = -1

SlotChangedListener = Callable[[int, int], None]


class SlotPolicy:
    """
    Save settings plus the active slot index.

    Out-of-range slot indices are rejected with SlotIndexError, never
    clamped or wrapped. When slot indexing is disabled every key is the
    bare prefix.
    """

    def __init__(self, settings: Optional[SaveSettings] = None):
        self.settings = settings or SaveSettings()
        self._active_slot = NO_ACTIVE_SLOT
        self._listeners: List[SlotChangedListener] = []

    @classmethod
    def from_settings(cls, settings: SaveSettings) -> "SlotPolicy":
        return cls(settings)

    # =========================================================================
    # Settings
    # =========================================================================

    @property
    def save_directory(self) -> str:
        return self.settings.save_directory

    @property
    def file_extension(self) -> str:
        return self.settings.file_extension

    @property
    def pretty_print(self) -> bool:
        return self.settings.pretty_print

    @property
    def schema_version(self) -> int:
        return self.settings.schema_version

    @property
    def use_save_slots(self) -> bool:
        return self.settings.use_save_slots

    @property
    def max_slots(self) -> int:
        return self.settings.max_slots

    # =========================================================================
    # Keys
    # =========================================================================

    def is_valid_slot_index(self, index: int) -> bool:
        return 0 <= index < self.max_slots

    def _check_index(self, index: int) -> None:
        if not self.is_valid_slot_index(index):
            raise SlotIndexError(index, self.max_slots)

    def manual_key(self, index: int) -> str:
        """Key for a manual save slot, e.g. "save-0"."""
        if not self.use_save_slots:
            return self.settings.manual_prefix
        self._check_index(index)
        return f"{self.settings.manual_prefix}-{index}"

    def autosave_key(self, index: int) -> str:
        """Key for an auto-save slot, e.g. "autosave-0"."""
        if not self.use_save_slots:
            return self.settings.autosave_prefix
        self._check_index(index)
        return f"{self.settings.autosave_prefix}-{index}"

    def list_slot_keys(self) -> List[str]:
        """Every manual key followed by every auto-save key."""
        if not self.use_save_slots:
            return [self.settings.manual_prefix, self.settings.autosave_prefix]
        manual = [self.manual_key(i) for i in range(self.max_slots)]
        auto = [self.autosave_key(i) for i in range(self.max_slots)]
        return manual + auto

    # =========================================================================
    # Active slot
    # =========================================================================

    @property
    def active_slot(self) -> int:
        return self._active_slot

    @property
    def has_active_slot(self) -> bool:
        return self._active_slot != NO_ACTIVE_SLOT

    def set_active_slot(self, index: int) -> None:
        """Select the active slot; NO_ACTIVE_SLOT clears it."""
        if not self.use_save_slots:
            raise SlotIndexError(index, self.max_slots, allow_sentinel=True)
        if index != NO_ACTIVE_SLOT and not self.is_valid_slot_index(index):
            raise SlotIndexError(index, self.max_slots, allow_sentinel=True)

        previous = self._active_slot
        if previous == index:
            return
        self._active_slot = index
        logger.info(f"Active slot changed: {previous} -> {index}")

        for listener in list(self._listeners):
            try:
                listener(previous, index)
            except Exception as e:
                logger.error(f"Slot listener failed: {e}")

    def clear_active_slot(self) -> None:
        if self._active_slot != NO_ACTIVE_SLOT:
            self.set_active_slot(NO_ACTIVE_SLOT)

    @property
    def current_manual_key(self) -> Optional[str]:
        if not self.has_active_slot:
            return None
        return self.manual_key(self._active_slot)

    @property
    def current_autosave_key(self) -> Optional[str]:
        if not self.has_active_slot:
            return None
        return self.autosave_key(self._active_slot)

    def on_slot_changed(self, listener: SlotChangedListener) -> None:
        """Subscribe to (previous, current) slot changes."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SlotChangedListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
