"""Clause extractors.

Each extractor re-scans the raw phrase on its own and returns a SQL fragment. Column words are
mapped through the column resolver; anything that does not resolve is silently dropped.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.translate.columns import resolve_column
from src.translate.dictionaries import (
    CONTAINMENT_PHRASES,
    DEFAULT_LIMIT,
    EQUALITY_PHRASES,
    GREATER_THAN_PHRASES,
    LESS_THAN_PHRASES,
    NAME_COLUMN_WORDS,
    NAMED_PHRASES,
    NUMERIC_COLUMN_HINTS,
    alternation,
)
from src.translate.normalize import is_numeric_literal, quote_literal, sql_string

_FLAGS = re.IGNORECASE | re.ASCII

_ORDER_BY_RE = re.compile(r"(?:order by|sort by)\s+(\w+)(?:\s+(asc|desc))?", _FLAGS)
_LIMIT_RE = re.compile(r"(?:limit|first|top)\s+(\d+)", _FLAGS)
_COMMA_SPLIT_RE = re.compile(r"\s*,\s*")

# Comparators that keep a non-numeric right-hand side bare (it may be another column).
_ORDERING_OPERATORS = frozenset({">", "<", ">=", "<="})


@dataclass(frozen=True)
class ConditionTemplate:
    """One WHERE pattern: a regex plus a function turning its match into a condition."""

    name: str
    regex: re.Pattern[str]
    build: Callable[[re.Match[str], Sequence[str]], str | None]


def _number(value: str) -> str | None:
    """Return `value` as a bare SQL number, dropping a trailing sentence period; else `None`."""

    value = value.rstrip(".")
    return value if is_numeric_literal(value) else None


def _greater_than(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = resolve_column(match.group(1), columns)
    value = _number(match.group(2))
    return f"{column} > {value}" if column and value else None


def _less_than(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = resolve_column(match.group(1), columns)
    value = _number(match.group(2))
    return f"{column} < {value}" if column and value else None


def _equal_to(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = resolve_column(match.group(1), columns)
    return f"{column} = {quote_literal(match.group(2))}" if column else None


def _containing(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = resolve_column(match.group(1), columns)
    return f"{column} LIKE {sql_string('%' + match.group(2) + '%')}" if column else None


def _comparison(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = resolve_column(match.group(1), columns)
    if not column:
        return None

    operator = match.group(2)
    value = match.group(3).rstrip(".")
    if not value:
        return None
    if operator not in _ORDERING_OPERATORS and not is_numeric_literal(value):
        value = sql_string(value)
    return f"{column} {operator} {value}"


def _named(match: re.Match[str], columns: Sequence[str]) -> str | None:
    column = None
    for word in NAME_COLUMN_WORDS:
        column = resolve_column(word, columns)
        if column:
            break
    return f"{column} = {sql_string(match.group(1))}" if column else None


CONDITION_TEMPLATES: tuple[ConditionTemplate, ...] = (
    ConditionTemplate(
        name="greater_than",
        regex=re.compile(rf"(\w+)\s+{alternation(GREATER_THAN_PHRASES)}\s+([\d.]+)", _FLAGS),
        build=_greater_than,
    ),
    ConditionTemplate(
        name="less_than",
        regex=re.compile(rf"(\w+)\s+{alternation(LESS_THAN_PHRASES)}\s+([\d.]+)", _FLAGS),
        build=_less_than,
    ),
    ConditionTemplate(
        name="equal_to",
        regex=re.compile(rf"(\w+)\s+{alternation(EQUALITY_PHRASES)}\s+([\w.]+)", _FLAGS),
        build=_equal_to,
    ),
    ConditionTemplate(
        name="containing",
        regex=re.compile(
            rf"(\w+)\s+{alternation(CONTAINMENT_PHRASES)}\s+['\"]?([^'\"\s]+)['\"]?", _FLAGS
        ),
        build=_containing,
    ),
    ConditionTemplate(
        name="comparison",
        regex=re.compile(r"(\w+)\s+([><=]=?)\s+([\w.]+)", _FLAGS),
        build=_comparison,
    ),
    ConditionTemplate(
        name="named",
        regex=re.compile(rf"{alternation(NAMED_PHRASES)}\s+['\"]?([^'\"\s]+)['\"]?", _FLAGS),
        build=_named,
    ),
)


def extract_where_conditions(phrase: str, columns: Sequence[str]) -> str | None:
    """Extract AND-joined WHERE conditions (without the `WHERE` keyword).

    Every template is tried once, in order, against its first occurrence in the phrase. Returns
    `None` when no template yields a condition on a real column.
    """

    conditions: list[str] = []
    for template in CONDITION_TEMPLATES:
        match = template.regex.search(phrase)
        if not match:
            continue
        condition = template.build(match, columns)
        if condition:
            conditions.append(condition)

    return " AND ".join(conditions) if conditions else None


def extract_columns(fragment: str | None, columns: Sequence[str]) -> str:
    """Resolve a comma-separated fragment into a projection list (`*` if nothing resolves)."""

    if not fragment:
        return "*"

    resolved: list[str] = []
    for token in _COMMA_SPLIT_RE.split(fragment.strip()):
        token = token.strip()
        if not token:
            continue
        column = resolve_column(token, columns)
        if column:
            resolved.append(column)

    return ", ".join(resolved) if resolved else "*"


def extract_order_by(phrase: str, columns: Sequence[str]) -> str:
    """Extract `ORDER BY <col> <ASC|DESC>`, or an empty string."""

    match = _ORDER_BY_RE.search(phrase)
    if not match:
        return ""

    column = resolve_column(match.group(1), columns)
    if not column:
        return ""

    direction = (match.group(2) or "asc").upper()
    return f"ORDER BY {column} {direction}"


def extract_aggregate_column(
        phrase: str,
        columns: Sequence[str],
        keywords: Sequence[str],
) -> str | None:
    """Pick the column an aggregate applies to.

    Strategy:
        1) For each keyword in order, resolve the first word that follows it.
        2) Otherwise the first column whose name hints a number (id, age, salary, ...).
        3) Otherwise the first column.

    Only an empty column list yields `None`.
    """

    for keyword in keywords:
        match = re.search(rf"\b{re.escape(keyword)}\b.*?\b(\w+)\b", phrase, _FLAGS)
        if not match:
            continue
        column = resolve_column(match.group(1), columns)
        if column:
            return column

    for column in columns:
        lowered = column.lower()
        if any(hint in lowered for hint in NUMERIC_COLUMN_HINTS):
            return column

    return columns[0] if columns else None


def extract_limit(phrase: str) -> str:
    """Extract the row limit requested by `limit N`, `first N` or `top N` (default `"100"`)."""

    match = _LIMIT_RE.search(phrase)
    return match.group(1) if match else DEFAULT_LIMIT
