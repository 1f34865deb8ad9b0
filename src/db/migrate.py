"""Apply SQL migrations to the metadata database.

This project keeps migrations as plain `.sql` files under `src/db/migrations/` and applies them in
lexicographic order. Applied migration filenames are tracked in the `schema_migrations` table.
"""

from __future__ import annotations

import argparse
import sqlite3
from pathlib import Path

from dotenv import load_dotenv

from src.config.settings import load_settings
from src.db.connection import connect_sqlite

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _ensure_schema_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations
        (
            filename   TEXT PRIMARY KEY,
            applied_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def _list_migration_files() -> list[Path]:
    if not MIGRATIONS_DIR.exists():
        raise RuntimeError(f"Migrations directory does not exist: {MIGRATIONS_DIR}")

    files = sorted(p for p in MIGRATIONS_DIR.iterdir() if p.is_file() and p.suffix == ".sql")
    if not files:
        raise RuntimeError(f"No .sql migration files found in {MIGRATIONS_DIR}")
    return files


def _get_applied_migrations(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT filename FROM schema_migrations").fetchall()
    return {r[0] for r in rows}


def _apply_migration(conn: sqlite3.Connection, filename: str, sql_text: str) -> None:
    # `executescript` commits any pending transaction first, so wrap the file in its own.
    try:
        conn.executescript(f"BEGIN;\n{sql_text}\nCOMMIT;")
    except sqlite3.Error:
        if conn.in_transaction:
            conn.rollback()
        raise
    conn.execute("INSERT INTO schema_migrations(filename) VALUES (?)", (filename,))
    conn.commit()


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply every pending migration on an open connection.

    Returns:
        Filenames applied by this call, in order.
    """

    files = _list_migration_files()

    _ensure_schema_migrations(conn)
    applied = _get_applied_migrations(conn)

    newly_applied: list[str] = []
    for file_path in files:
        if file_path.name in applied:
            continue

        sql_text = file_path.read_text(encoding="utf-8")
        _apply_migration(conn, file_path.name, sql_text)
        newly_applied.append(file_path.name)
    return newly_applied


def migrate(metadata_db_path: Path | str, *, recreate: bool) -> list[str]:
    """Run migrations against the metadata database file."""

    path = Path(metadata_db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect_sqlite(path)
    try:
        if recreate:
            conn.executescript(
                """
                DROP TABLE IF EXISTS columns;
                DROP TABLE IF EXISTS tables;
                DROP TABLE IF EXISTS databases;
                DROP TABLE IF EXISTS schema_migrations;
                """
            )
        return apply_migrations(conn)
    finally:
        conn.close()


def main() -> None:
    """CLI entry point for applying migrations."""

    parser = argparse.ArgumentParser(description="Apply SQL migrations to the metadata database.")
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Drop existing metadata tables and re-apply all migrations (destructive).",
    )
    args = parser.parse_args()

    load_dotenv(".env")
    settings = load_settings()
    migrate(settings.metadata_db_path, recreate=args.recreate)


if __name__ == "__main__":
    main()
