"""Named SQLite databases on disk.

Each user database is a `<name>.db` file in the configured directory. One connection per database
name is cached for the life of the process, and every use of it is serialized by a per-database
lock.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from src.db.connection import connect_sqlite
from src.sql.identifiers import validate_identifier

logger = logging.getLogger(__name__)

DB_SUFFIX = ".db"


class DatabaseNotFoundError(LookupError):
    """Raised when a named database has no file on disk."""


class DatabaseExistsError(ValueError):
    """Raised when creating a database whose file already exists."""


class DatabaseRegistry:
    """Maps database names to files and cached connections."""

    def __init__(self, databases_dir: Path | str) -> None:
        self.databases_dir = Path(databases_dir)
        self._connections: dict[str, sqlite3.Connection] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def ensure_dir(self) -> None:
        self.databases_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        """Return the file path of database `name` (the name must be a plain identifier)."""

        name = validate_identifier(name, kind="database name")
        return self.databases_dir / f"{name}{DB_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def list_names(self) -> list[str]:
        """Names of every database file in the directory, sorted."""

        if not self.databases_dir.exists():
            return []
        return sorted(
            p.stem for p in self.databases_dir.iterdir() if p.is_file() and p.suffix == DB_SUFFIX
        )

    def create(self, name: str) -> Path:
        """Create an empty database file.

        Raises:
            DatabaseExistsError: If the file already exists.
        """

        path = self.path_for(name)
        self.ensure_dir()
        with self._guard:
            # Exclusive create: exactly one caller claims the file.
            try:
                path.open("xb").close()
            except FileExistsError as exc:
                raise DatabaseExistsError(f"Database already exists: {name}") from exc

            self._connections[name] = connect_sqlite(path)
            self._locks.setdefault(name, threading.Lock())
        logger.info("database created name=%s path=%s", name, path)
        return path

    def remove(self, name: str) -> None:
        """Close and delete a database file (used to roll back a failed creation)."""

        path = self.path_for(name)
        with self._guard:
            conn = self._connections.pop(name, None)
            self._locks.pop(name, None)
        if conn is not None:
            conn.close()
        path.unlink(missing_ok=True)

    def _connection(self, name: str) -> tuple[sqlite3.Connection, threading.Lock]:
        path = self.path_for(name)
        with self._guard:
            conn = self._connections.get(name)
            if conn is None:
                if not path.is_file():
                    raise DatabaseNotFoundError(f"Database not found: {name}")
                conn = connect_sqlite(path)
                self._connections[name] = conn
            lock = self._locks.setdefault(name, threading.Lock())
        return conn, lock

    @contextmanager
    def connect(self, name: str) -> Iterator[sqlite3.Connection]:
        """Yield the cached connection of database `name` while holding its lock.

        Raises:
            DatabaseNotFoundError: If the database file does not exist.
        """

        conn, lock = self._connection(name)
        with lock:
            yield conn

    def close_all(self) -> None:
        """Close every cached connection."""

        with self._guard:
            connections = list(self._connections.items())
            self._connections.clear()

        for name, conn in connections:
            try:
                conn.close()
            except sqlite3.Error:
                logger.exception("failed to close database name=%s", name)
