"""
SQLite Slot Backend

Single-file database holding one row per slot key.
Designed for simplicity and portability.
"""

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any

from .base import SlotBackend

logger = logging.getLogger("unified_save.backends.sqlite")


class SQLiteSlotBackend(SlotBackend):
    """SQLite storage for slot documents."""

    name = "sqlite"

    def __init__(self, db_path: str | Path = "./saves.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _conn(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        """Initialize database schema."""
        with self._conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
        logger.info(f"Slot storage initialized at {self.db_path}")

    # =========================================================================
    # Blocking operations
    # =========================================================================

    def _write(self, key: str, data: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._conn() as conn:
            conn.execute("""
                INSERT INTO slots (key, data, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (key, data, now))

    def _read(self, key: str) -> Optional[str]:
        with self._conn() as conn:
            row = conn.execute("SELECT data FROM slots WHERE key = ?", (key,)).fetchone()
            return row["data"] if row else None

    def _has(self, key: str) -> bool:
        with self._conn() as conn:
            row = conn.execute("SELECT 1 FROM slots WHERE key = ?", (key,)).fetchone()
            return row is not None

    def _remove(self, key: str) -> int:
        with self._conn() as conn:
            return conn.execute("DELETE FROM slots WHERE key = ?", (key,)).rowcount

    def _keys(self, prefix: Optional[str]) -> List[str]:
        with self._conn() as conn:
            if prefix:
                # Escape LIKE wildcards so the prefix matches literally
                escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
                rows = conn.execute(
                    "SELECT key FROM slots WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                    (escaped + "%",),
                ).fetchall()
            else:
                rows = conn.execute("SELECT key FROM slots ORDER BY key").fetchall()
            return [row["key"] for row in rows]

    # =========================================================================
    # SlotBackend
    # =========================================================================

    async def save(self, key: str, data: str) -> bool:
        try:
            await asyncio.to_thread(self._write, key, data)
        except sqlite3.Error as e:
            logger.error(f"Save failed for '{key}': {e}")
            return False
        logger.debug(f"Saved: {key}")
        return True

    async def load(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except sqlite3.Error as e:
            logger.error(f"Load failed for '{key}': {e}")
            return None

    async def exists(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._has, key)
        except sqlite3.Error as e:
            logger.error(f"Exists check failed for '{key}': {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            removed = await asyncio.to_thread(self._remove, key)
        except sqlite3.Error as e:
            logger.error(f"Delete failed for '{key}': {e}")
            return False
        if removed:
            logger.debug(f"Deleted: {key}")
        return True

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        try:
            return await asyncio.to_thread(self._keys, prefix)
        except sqlite3.Error as e:
            logger.error(f"Listing keys failed: {e}")
            return []

    def stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        with self._conn() as conn:
            count = conn.execute("SELECT COUNT(*) FROM slots").fetchone()[0]
            last = conn.execute("SELECT MAX(updated_at) FROM slots").fetchone()[0]
        return {"slots": count, "last_updated": last, "path": str(self.db_path)}

    def describe(self) -> str:
        return f"sqlite:{self.db_path}"
