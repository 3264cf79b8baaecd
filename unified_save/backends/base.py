"""
Slot Backend Contract

Durable key/value persistence for whole serialized snapshots. Backends
know nothing about subsystem structure; they store one text document per
slot key.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class SlotBackend(ABC):
    """
    Async slot storage.

    I/O errors are caught inside the backend and surfaced as False,
    None or an empty list plus a log entry. A missing key on load is
    None, never an exception. Cancellation is never swallowed.
    """

    name: str = "backend"

    @abstractmethod
    async def save(self, key: str, data: str) -> bool:
        """Store a document, overwriting any existing one."""

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """Read a document. Returns None if the key does not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a document is stored under the key."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a document. Deleting a missing key succeeds."""

    @abstractmethod
    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        """List stored keys, optionally filtered by prefix."""

    async def aclose(self) -> None:
        """Release any held resources."""

    @property
    def is_configured(self) -> bool:
        """False only for the no-op backend."""
        return True

    def describe(self) -> str:
        return self.name
