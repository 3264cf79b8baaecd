"""
Unified Save Errors

Exceptions raised inside the core. The assembler, backends and coordinator
catch them at their boundaries and report boolean outcomes instead.
"""


class UnifiedSaveError(Exception):
    """Base class for all unified save errors."""


class SlotIndexError(UnifiedSaveError, ValueError):
    """Slot index outside the configured bounds."""

    def __init__(self, index: int, max_slots: int, allow_sentinel: bool = False):
        self.index = index
        self.max_slots = max_slots
        low = -1 if allow_sentinel else 0
        super().__init__(
            f"Invalid slot index: {index}. Must be {low} to {max_slots - 1}."
        )


class UnknownPayloadKindError(UnifiedSaveError, KeyError):
    """No codec registered for a payload kind."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(kind)

    def __str__(self) -> str:
        return f"No codec registered for payload kind '{self.kind}'"


class PayloadEncodeError(UnifiedSaveError):
    """A subsystem payload could not be serialized."""


class PayloadDecodeError(UnifiedSaveError):
    """A stored payload could not be deserialized."""


class SnapshotFormatError(UnifiedSaveError):
    """A stored document is not a readable unified snapshot."""
