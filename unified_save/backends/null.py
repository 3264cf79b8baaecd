"""No-op backend used when persistence is not wired up."""

import logging
from typing import Optional, List

from .base import SlotBackend

logger = logging.getLogger("unified_save.backends.null")


class NullBackend(SlotBackend):
    """Saves and loads fail gracefully; nothing is stored."""

    name = "null"

    async def save(self, key: str, data: str) -> bool:
        logger.warning("No backend configured. Save operation ignored.")
        return False

    async def load(self, key: str) -> Optional[str]:
        logger.warning("No backend configured. Load operation returned nothing.")
        return None

    async def exists(self, key: str) -> bool:
        return False

    async def delete(self, key: str) -> bool:
        return True

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        return []

    @property
    def is_configured(self) -> bool:
        return False
