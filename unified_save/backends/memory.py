"""In-memory backend (for testing)."""

import asyncio
from typing import Optional, Dict, List

from .base import SlotBackend


class MemoryBackend(SlotBackend):
    """Volatile dict-backed slot store."""

    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._documents: Dict[str, str] = dict(initial or {})
        self.write_count = 0

    async def save(self, key: str, data: str) -> bool:
        await asyncio.sleep(0)
        self._documents[key] = data
        self.write_count += 1
        return True

    async def load(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        return self._documents.get(key)

    async def exists(self, key: str) -> bool:
        return key in self._documents

    async def delete(self, key: str) -> bool:
        self._documents.pop(key, None)
        return True

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        return sorted(k for k in self._documents if not prefix or k.startswith(prefix))

    @property
    def documents(self) -> Dict[str, str]:
        """Direct view of stored documents."""
        return self._documents
