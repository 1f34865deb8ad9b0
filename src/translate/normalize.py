"""Phrase normalization for rule matching."""

from __future__ import annotations

import re

_NUMBER_RE = re.compile(r"^(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?$", flags=re.IGNORECASE)


def normalize_phrase(phrase: str) -> str:
    """Lower-case and trim a phrase for trigger matching.

    Only triggers see the normalized text. Builders receive the original phrase so literal values
    keep their case.
    """

    return (phrase or "").strip().lower()


def is_numeric_literal(value: str) -> bool:
    """Whether a literal can be emitted into SQL without quotes."""

    return bool(_NUMBER_RE.match(value))


def quote_literal(value: str) -> str:
    """Emit a value as a SQL literal: numbers bare, everything else single-quoted."""

    if is_numeric_literal(value):
        return value
    return sql_string(value)


def sql_string(value: str) -> str:
    """Single-quote a string, doubling embedded quotes."""

    return "'" + value.replace("'", "''") + "'"
