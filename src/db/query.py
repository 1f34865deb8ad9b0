"""Statement execution helpers.

SELECT statements (recognized by prefix only) return rows; anything else is committed and reports
how many rows it changed. Engine errors are not swallowed (the caller decides how to report them).
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

from src.db.connection import rows_to_dicts


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one executed statement."""

    rows: list[dict[str, Any]] | None = None
    changes: int = 0
    last_row_id: int | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows or [])


def is_select(sql: str) -> bool:
    """Whether the statement is a read (plain prefix check, no parsing)."""

    return sql.strip().lower().startswith("select")


def fetch_all(
        conn: sqlite3.Connection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> list[dict[str, Any]]:
    """Run a read statement and return its rows as dicts."""

    return rows_to_dicts(conn.execute(sql, params).fetchall())


def execute(conn: sqlite3.Connection, sql: str, params: tuple[Any, ...] = ()) -> QueryResult:
    """Execute one statement.

    Contract:
        - SELECT: returns `rows`; nothing is committed.
        - Anything else: commits; `changes` counts rows touched by this statement only.
        - On error the open transaction is rolled back and the `sqlite3.Error` propagates.
    """

    if is_select(sql):
        return QueryResult(rows=fetch_all(conn, sql, params))

    before = conn.total_changes
    try:
        cursor = conn.execute(sql, params)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise

    return QueryResult(changes=conn.total_changes - before, last_row_id=cursor.lastrowid)
