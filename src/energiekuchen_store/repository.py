"""
Slot repositories - the local key-value persistence layer.

A slot repository stores opaque strings under string keys. Every write
replaces the whole value (last write wins). Only EnergyStorage should
talk to a repository directly; it owns serialization and validation.
"""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from .schema import get_all_schema_sql


class QuotaExceeded(OSError):
    """Raised by a repository when a write does not fit its quota."""
    pass


class SlotRepository(ABC):
    """
    Base class for key-value slot backends.

    Implement get(), set() and remove().
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the slot is empty."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Overwrite the slot."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Empty the slot. Removing an empty slot is not an error."""
        pass


class SQLiteSlotRepository(SlotRepository):
    """
    SQLite-backed slot repository.

    Usage:
        repo = SQLiteSlotRepository("~/.energiekuchen/energiekuchen.db")
        repo.set("energiekuchen-data", '{"version": "1.0", ...}')
        repo.get("energiekuchen-data")
    """

    def __init__(self, db_path: str = "~/.energiekuchen/energiekuchen.db"):
        """
        Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with self._connection() as conn:
            conn.executescript(get_all_schema_sql())

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM slots WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            return row["value"]

    def set(self, key: str, value: str) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO slots (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )

    def remove(self, key: str) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM slots WHERE key = ?", (key,))


class MemorySlotRepository(SlotRepository):
    """
    In-process slot repository.

    Optionally enforces a byte quota on the total stored size so tests can
    simulate a full storage area.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._slots: Dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(
                len(v.encode("utf-8")) for k, v in self._slots.items() if k != key
            )
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise QuotaExceeded(f"Storage quota of {self.quota_bytes} bytes exceeded")
        self._slots[key] = value

    def remove(self, key: str) -> None:
        self._slots.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._slots
