"""Allowlisted SQL identifiers.

Database, table and column names are interpolated into SQL text and file paths, so they must be
plain identifiers. Values never go through here; they are always bound parameters.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# SQLite keywords; a bare keyword cannot be used as an unquoted table or column name.
SQLITE_KEYWORDS = frozenset(
    """
    ABORT ACTION ADD AFTER ALL ALTER ALWAYS ANALYZE AND AS ASC ATTACH AUTOINCREMENT BEFORE BEGIN
    BETWEEN BY CASCADE CASE CAST CHECK COLLATE COLUMN COMMIT CONFLICT CONSTRAINT CREATE CROSS
    CURRENT CURRENT_DATE CURRENT_TIME CURRENT_TIMESTAMP DATABASE DEFAULT DEFERRABLE DEFERRED DELETE
    DESC DETACH DISTINCT DO DROP EACH ELSE END ESCAPE EXCEPT EXCLUDE EXCLUSIVE EXISTS EXPLAIN FAIL
    FILTER FIRST FOLLOWING FOR FOREIGN FROM FULL GENERATED GLOB GROUP GROUPS HAVING IF IGNORE
    IMMEDIATE IN INDEX INDEXED INITIALLY INNER INSERT INSTEAD INTERSECT INTO IS ISNULL JOIN KEY LAST
    LEFT LIKE LIMIT MATCH MATERIALIZED NATURAL NO NOT NOTHING NOTNULL NULL NULLS OF OFFSET ON OR
    ORDER OTHERS OUTER OVER PARTITION PLAN PRAGMA PRECEDING PRIMARY QUERY RAISE RANGE RECURSIVE
    REFERENCES REGEXP REINDEX RELEASE RENAME REPLACE RESTRICT RETURNING RIGHT ROLLBACK ROW ROWS
    SAVEPOINT SELECT SET TABLE TEMP TEMPORARY THEN TIES TO TRANSACTION TRIGGER UNBOUNDED UNION
    UNIQUE UPDATE USING VACUUM VALUES VIEW VIRTUAL WHEN WHERE WINDOW WITH WITHOUT
    """.split()
)

# A type name with an optional size, e.g. INTEGER, VARCHAR(255), DECIMAL(10, 2), DOUBLE PRECISION.
DATA_TYPE_RE = re.compile(r"^[A-Za-z][A-Za-z ]*(?:\(\s*\d+\s*(?:,\s*\d+\s*)?\))?$")


class InvalidIdentifierError(ValueError):
    """Raised when a name cannot be used as a SQL identifier."""


def validate_identifier(value: str, *, kind: str = "identifier") -> str:
    """Return `value` if it is a safe identifier, else raise `InvalidIdentifierError`."""

    if not isinstance(value, str) or not IDENTIFIER_RE.fullmatch(value):
        raise InvalidIdentifierError(f"Invalid {kind}: {value!r}")
    if value.lower().startswith("sqlite_"):
        raise InvalidIdentifierError(f"Invalid {kind}: names starting with 'sqlite_' are reserved")
    if value.upper() in SQLITE_KEYWORDS:
        raise InvalidIdentifierError(f"Invalid {kind}: {value!r} is a reserved SQL keyword")
    return value


def validate_data_type(value: str) -> str:
    """Return a normalized (stripped, upper-cased) column type or raise."""

    normalized = " ".join((value or "").split()).upper()
    if not DATA_TYPE_RE.fullmatch(normalized):
        raise InvalidIdentifierError(f"Invalid data type: {value!r}")
    return normalized


def unknown_columns(provided: Iterable[str], allowed: Iterable[str]) -> list[str]:
    """Return the provided column names that are not in `allowed`, in provided order."""

    allowed_set = set(allowed)
    return [c for c in provided if c not in allowed_set]
