"""Table schema introspection (`PRAGMA table_info`)."""

from __future__ import annotations

import sqlite3
from typing import Any

from src.db.connection import rows_to_dicts
from src.sql.identifiers import validate_identifier
from src.translate.schema import ColumnDescriptor


def table_info(conn: sqlite3.Connection, table: str) -> list[dict[str, Any]]:
    """Return raw `PRAGMA table_info` rows: cid, name, type, notnull, dflt_value, pk.

    An unknown table yields an empty list, not an error.
    """

    table = validate_identifier(table, kind="table name")
    rows = conn.execute(f'PRAGMA table_info("{table}")').fetchall()
    return rows_to_dicts(rows)


def describe_table(conn: sqlite3.Connection, table: str) -> list[ColumnDescriptor]:
    """Return the columns of `table` in schema-declaration order."""

    return [
        ColumnDescriptor(name=row["name"], declared_type=row["type"] or "")
        for row in table_info(conn, table)
    ]
