"""Shared SQLite connection helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any


def connect_sqlite(path: Path | str) -> sqlite3.Connection:
    """Open a SQLite database file with the session settings every caller relies on.

    Connections are shared across FastAPI's worker threads, so same-thread checking is disabled;
    callers serialize access with a lock.
    """

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def rows_to_dicts(rows: list[sqlite3.Row]) -> list[dict[str, Any]]:
    """Convert `sqlite3.Row` objects into plain JSON-serializable dicts."""

    return [dict(row) for row in rows]
