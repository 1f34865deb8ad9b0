"""Metadata bookkeeping for databases and tables created through the API.

The metadata lives in its own SQLite file, separate from the user databases. Its schema is owned by
the migrations in `src/db/migrations/`.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from src.db.connection import connect_sqlite, rows_to_dicts
from src.db.migrate import apply_migrations
from src.sql.schema import TableDefinition

logger = logging.getLogger(__name__)


class MetadataError(RuntimeError):
    """Raised when the metadata store is used before `open()` or after `close()`."""


class MetadataStore:
    """Thread-safe access to the metadata database."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def open(self) -> None:
        """Connect and apply pending migrations. Calling it twice is a no-op."""

        with self._lock:
            if self._conn is not None:
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = connect_sqlite(self.path)
            try:
                applied = apply_migrations(conn)
            except Exception:
                conn.close()
                raise
            if applied:
                logger.info("metadata migrations applied files=%s", ",".join(applied))
            self._conn = conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise MetadataError("Metadata store is not open")
        return self._conn

    def _fetch(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        with self._lock:
            conn = self._require_conn()
            return rows_to_dicts(conn.execute(sql, params).fetchall())

    def list_databases(self) -> list[dict[str, Any]]:
        """Databases with their table counts, newest first."""

        return self._fetch(
            """
            SELECT d.name, d.description, d.created_at,
                   COUNT(t.table_name) AS table_count
            FROM databases d
                     LEFT JOIN tables t ON d.name = t.database_name
            GROUP BY d.name
            ORDER BY d.created_at DESC, d.name
            """
        )

    def has_database(self, name: str) -> bool:
        return bool(self._fetch("SELECT 1 FROM databases WHERE name = ?", (name,)))

    def add_database(self, name: str, description: str = "") -> None:
        """Record a database. Raises `sqlite3.IntegrityError` if the name is already recorded."""

        with self._lock:
            conn = self._require_conn()
            with conn:
                conn.execute(
                    "INSERT INTO databases (name, description) VALUES (?, ?)",
                    (name, description or ""),
                )

    def list_tables(self, database: str) -> list[dict[str, Any]]:
        """Tables of one database with their column counts, newest first."""

        return self._fetch(
            """
            SELECT t.table_name, t.description, t.created_at,
                   COUNT(c.column_name) AS column_count
            FROM tables t
                     LEFT JOIN columns c
                               ON t.database_name = c.database_name AND t.table_name = c.table_name
            WHERE t.database_name = ?
            GROUP BY t.table_name
            ORDER BY t.created_at DESC, t.table_name
            """,
            (database,),
        )

    def has_table(self, database: str, table: str) -> bool:
        rows = self._fetch(
            "SELECT 1 FROM tables WHERE database_name = ? AND table_name = ?",
            (database, table),
        )
        return bool(rows)

    def add_table(self, database: str, definition: TableDefinition) -> None:
        """Record a table and all of its columns in a single transaction."""

        with self._lock:
            conn = self._require_conn()
            with conn:
                conn.execute(
                    "INSERT INTO tables (database_name, table_name, description) VALUES (?, ?, ?)",
                    (database, definition.table_name, definition.description or ""),
                )
                conn.executemany(
                    """
                    INSERT INTO columns (database_name, table_name, column_name, data_type,
                                         is_primary_key, is_nullable, description)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            database,
                            definition.table_name,
                            c.column_name,
                            c.data_type,
                            c.is_primary_key,
                            c.is_nullable,
                            c.description or "",
                        )
                        for c in definition.columns
                    ],
                )
