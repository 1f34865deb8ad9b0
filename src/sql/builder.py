"""Deterministic SQL statement builder for the CRUD endpoints.

The builder converts validated table definitions and row payloads into parameterized SQLite
statements. Identifiers (tables, columns, types) are strictly allowlisted; only values become bound
parameters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from src.sql.identifiers import unknown_columns, validate_identifier
from src.sql.schema import ColumnDefinition, TableDefinition

PREVIEW_LIMIT = 100


class SQLBuilderError(ValueError):
    """Raised when a request cannot be converted into a safe SQL statement."""


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL statement ready for execution."""

    sql: str
    params: tuple[Any, ...]


def _column_sql(column: ColumnDefinition) -> str:
    definition = f"{column.column_name} {column.data_type}"
    if column.is_primary_key:
        definition += " PRIMARY KEY"
    if not column.is_nullable:
        definition += " NOT NULL"
    return definition


def _checked_columns(data: Mapping[str, Any], allowed_columns: Iterable[str]) -> list[str]:
    if not data:
        raise SQLBuilderError("Data object is required")

    provided = list(data.keys())
    invalid = unknown_columns(provided, allowed_columns)
    if invalid:
        raise SQLBuilderError(f"Invalid columns: {', '.join(invalid)}")
    return provided


def build_create_table(definition: TableDefinition) -> BuiltQuery:
    """Build `CREATE TABLE IF NOT EXISTS` for a validated definition."""

    columns_sql = ", ".join(_column_sql(c) for c in definition.columns)
    sql = f"CREATE TABLE IF NOT EXISTS {definition.table_name} ({columns_sql})"
    return BuiltQuery(sql=sql, params=())


def build_insert(
        table: str,
        data: Mapping[str, Any],
        *,
        allowed_columns: Iterable[str],
) -> BuiltQuery:
    """Build an INSERT of one row; every key of `data` must be an existing column."""

    table = validate_identifier(table, kind="table name")
    columns = _checked_columns(data, allowed_columns)

    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
    return BuiltQuery(sql=sql, params=tuple(data[c] for c in columns))


def build_update(
        table: str,
        data: Mapping[str, Any],
        rowid: int,
        *,
        allowed_columns: Iterable[str],
) -> BuiltQuery:
    """Build an UPDATE of the row addressed by SQLite's `rowid`."""

    table = validate_identifier(table, kind="table name")
    columns = _checked_columns(data, allowed_columns)

    set_clause = ", ".join(f"{c} = ?" for c in columns)
    sql = f"UPDATE {table} SET {set_clause} WHERE rowid = ?"
    return BuiltQuery(sql=sql, params=(*(data[c] for c in columns), rowid))


def build_delete(table: str, rowid: int) -> BuiltQuery:
    """Build a DELETE of the row addressed by `rowid`."""

    table = validate_identifier(table, kind="table name")
    return BuiltQuery(sql=f"DELETE FROM {table} WHERE rowid = ?", params=(rowid,))


def build_preview(table: str) -> BuiltQuery:
    """Build the table preview query (first rows, with `rowid` so rows can be edited)."""

    table = validate_identifier(table, kind="table name")
    return BuiltQuery(sql=f"SELECT *, rowid FROM {table} LIMIT {PREVIEW_LIMIT}", params=())
