"""
Key-value storage for the persisted plan flag.

The tier survives restarts by writing ``"1"`` (Pro) or ``"0"`` (Free) under a
fixed key. Storage is injected into the workspace, so any object with
``get``/``set`` works; two implementations are provided:

- MemoryPlanStore: process-local dictionary, used by tests and embedding code
- SQLitePlanStore: single ``settings`` table in a local SQLite database
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol

from .utils import ensure_directory


class PlanStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryPlanStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SQLitePlanStore:
    """SQLite-backed store; one connection per call, committed on success."""

    def __init__(self, db_path: Path | str = "data/everythingpdf.db") -> None:
        self.db_path = Path(db_path)
        ensure_directory(self.db_path.parent)
        self._init_db()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, value),
            )
