"""
File Slot Backend

One file per slot key in a dedicated directory. Keys are sanitized by
replacing path separators with underscores and suffixed with a fixed
extension. Writes are atomic (temp file, then rename).
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, List

from .base import SlotBackend

logger = logging.getLogger("unified_save.backends.file")


def sanitize_key(key: str) -> str:
    """Make a slot key safe to use as a file name."""
    return key.replace("/", "_").replace("\\", "_")


class FileSlotBackend(SlotBackend):
    """
    Directory-of-files slot storage.

    Blocking file I/O runs in a worker thread so callers on an event
    loop are not stalled.
    """

    name = "file"

    def __init__(
        self,
        directory: str | Path = "./Saves",
        file_extension: str = ".save",
        pretty_print: bool = True,
    ):
        self.directory = Path(directory)
        self.file_extension = file_extension if file_extension.startswith(".") else "." + file_extension
        # Formatting is decided by whoever serializes the document
        self.pretty_print = pretty_print
        self._ensure_directory()

    def path_for(self, key: str) -> Path:
        """File path used for a slot key."""
        return self.directory / f"{sanitize_key(key)}{self.file_extension}"

    def _ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # Blocking operations
    # =========================================================================

    def _write(self, key: str, data: str) -> None:
        self._ensure_directory()
        path = self.path_for(key)
        temp_path = path.with_name(f".{path.name}.tmp")
        try:
            temp_path.write_text(data, encoding="utf-8")
            os.replace(temp_path, path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _has(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def _remove(self, key: str) -> bool:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def _keys(self, prefix: Optional[str]) -> List[str]:
        if not self.directory.exists():
            return []
        keys = []
        for path in sorted(self.directory.glob(f"*{self.file_extension}")):
            if path.name.startswith("."):
                continue
            key = path.name[: -len(self.file_extension)]
            if not prefix or key.startswith(prefix):
                keys.append(key)
        return keys

    # =========================================================================
    # SlotBackend
    # =========================================================================

    async def save(self, key: str, data: str) -> bool:
        try:
            await asyncio.to_thread(self._write, key, data)
        except OSError as e:
            logger.error(f"Save failed for '{key}': {e}")
            return False
        logger.debug(f"Saved: {key}")
        return True

    async def load(self, key: str) -> Optional[str]:
        try:
            data = await asyncio.to_thread(self._read, key)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Load failed for '{key}': {e}")
            return None
        if data is None:
            logger.warning(f"File not found: {key}")
            return None
        logger.debug(f"Loaded: {key}")
        return data

    async def exists(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._has, key)
        except OSError as e:
            logger.error(f"Exists check failed for '{key}': {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            removed = await asyncio.to_thread(self._remove, key)
        except OSError as e:
            logger.error(f"Delete failed for '{key}': {e}")
            return False
        if removed:
            logger.debug(f"Deleted: {key}")
        return True

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        try:
            return await asyncio.to_thread(self._keys, prefix)
        except OSError as e:
            logger.error(f"Listing keys failed: {e}")
            return []

    def describe(self) -> str:
        return f"file:{self.directory}/*{self.file_extension}"
