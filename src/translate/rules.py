"""The ordered phrase-to-SQL rule table.

Rules are plain records evaluated by a single dispatch loop in `src.translate.translator`. Order is
significant: the first rule whose trigger matches and whose builder returns SQL wins. A builder
returns `None` when the phrase only partially fits its rule, which sends the dispatcher on to the
next rule.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.translate.clauses import (
    extract_aggregate_column,
    extract_columns,
    extract_limit,
    extract_order_by,
    extract_where_conditions,
)
from src.translate.dictionaries import AVERAGE, MAXIMUM, MINIMUM, TOTAL, Aggregate

ClauseBuilder = Callable[[str, str, Sequence[str]], str | None]

_SHOW_WHERE_RE = re.compile(r"show\s+(?:me\s+)?(.*?)\s+where", re.IGNORECASE)
_ONLY_COLUMNS_RE = re.compile(r"(?:but|only|just)\s+([\w\s,]+)", re.IGNORECASE | re.ASCII)


@dataclass(frozen=True)
class Rule:
    """A trigger pattern plus the builder producing the statement for it."""

    name: str
    trigger: re.Pattern[str]
    build: ClauseBuilder
    is_aggregate: bool = False

    def matches(self, normalized_phrase: str) -> bool:
        return self.trigger.search(normalized_phrase) is not None


def assemble(*parts: str | None) -> str:
    """Join non-empty clauses with single spaces."""

    return " ".join(p for p in parts if p)


def where_clause(conditions: str | None) -> str:
    return f"WHERE {conditions}" if conditions else ""


def _count_rows(_phrase: str, table: str, _columns: Sequence[str]) -> str | None:
    return f"SELECT COUNT(*) as count FROM {table}"


def _select_all(_phrase: str, table: str, _columns: Sequence[str]) -> str | None:
    return f"SELECT * FROM {table}"


def _filter_rows(phrase: str, table: str, columns: Sequence[str]) -> str | None:
    conditions = extract_where_conditions(phrase, columns)
    if not conditions:
        return None
    return assemble(f"SELECT * FROM {table}", where_clause(conditions))


def _columns_where(phrase: str, table: str, columns: Sequence[str]) -> str | None:
    match = _SHOW_WHERE_RE.search(phrase)
    if not match:
        return None

    conditions = extract_where_conditions(phrase, columns)
    if not conditions:
        return None

    projection = extract_columns(match.group(1), columns)
    return assemble(f"SELECT {projection} FROM {table}", where_clause(conditions))


def _columns_only(phrase: str, table: str, columns: Sequence[str]) -> str | None:
    match = _ONLY_COLUMNS_RE.search(phrase)
    if not match:
        return None

    projection = extract_columns(match.group(1), columns)
    return f"SELECT {projection} FROM {table}"


def _ordered(phrase: str, table: str, columns: Sequence[str]) -> str | None:
    conditions = extract_where_conditions(phrase, columns)
    order_by = extract_order_by(phrase, columns)
    return assemble(f"SELECT * FROM {table}", where_clause(conditions), order_by)


def _limited(phrase: str, table: str, columns: Sequence[str]) -> str | None:
    conditions = extract_where_conditions(phrase, columns)
    limit = extract_limit(phrase)
    return assemble(f"SELECT * FROM {table}", where_clause(conditions), f"LIMIT {limit}")


def _aggregate_builder(aggregate: Aggregate) -> ClauseBuilder:
    def build(phrase: str, table: str, columns: Sequence[str]) -> str | None:
        column = extract_aggregate_column(phrase, columns, aggregate.keywords)
        if column is None:
            return None
        return (
            f"SELECT {aggregate.function}({column}) as {aggregate.alias_prefix}_{column} "
            f"FROM {table}"
        )

    return build


def _aggregate_trigger(aggregate: Aggregate) -> re.Pattern[str]:
    keywords = "|".join(re.escape(k) for k in aggregate.keywords)
    return re.compile(rf"\b({keywords})\b.*\b(\w+)\b", re.IGNORECASE)


RULES: tuple[Rule, ...] = (
    Rule(
        name="count_all",
        trigger=re.compile(r"\b(count|how many)\b.*\b(all|everything|records|rows)\b", re.IGNORECASE),
        build=_count_rows,
        is_aggregate=True,
    ),
    Rule(
        name="count",
        trigger=re.compile(r"\b(count|how many)\b", re.IGNORECASE),
        build=_count_rows,
        is_aggregate=True,
    ),
    Rule(
        name="select_all",
        trigger=re.compile(
            r"\bshow\s+me\s+all\b|\bselect\s+all\b|\bget\s+all\b|\blist\s+all\b|\beverything\b",
            re.IGNORECASE,
        ),
        build=_select_all,
    ),
    Rule(
        name="filter",
        trigger=re.compile(r"\bfind\s+records\s+where\b|\bfilter\s+by\b", re.IGNORECASE),
        build=_filter_rows,
    ),
    Rule(
        name="columns_where",
        trigger=re.compile(r"\bshow\s+(?:me\s+)?(.*?)\s+where\b", re.IGNORECASE),
        build=_columns_where,
    ),
    Rule(
        name="columns_only",
        trigger=re.compile(
            r"\b(what|which|show me|display|get)\b.*\b(but|only|just)\s+([\w\s,]+)\b",
            re.IGNORECASE,
        ),
        build=_columns_only,
    ),
    Rule(
        name="order",
        trigger=re.compile(r"\border\s+by\b|\bsort\s+by\b|\bsorted\b", re.IGNORECASE),
        build=_ordered,
    ),
    Rule(
        name="average",
        trigger=_aggregate_trigger(AVERAGE),
        build=_aggregate_builder(AVERAGE),
        is_aggregate=True,
    ),
    Rule(
        name="sum",
        trigger=_aggregate_trigger(TOTAL),
        build=_aggregate_builder(TOTAL),
        is_aggregate=True,
    ),
    Rule(
        name="max",
        trigger=_aggregate_trigger(MAXIMUM),
        build=_aggregate_builder(MAXIMUM),
        is_aggregate=True,
    ),
    Rule(
        name="min",
        trigger=_aggregate_trigger(MINIMUM),
        build=_aggregate_builder(MINIMUM),
        is_aggregate=True,
    ),
    Rule(
        name="limit",
        trigger=re.compile(r"\blimit\s+(\d+)\b|\bfirst\s+(\d+)\b|\btop\s+(\d+)\b", re.IGNORECASE),
        build=_limited,
    ),
)


def rule_by_name(name: str) -> Rule:
    """Look up a rule by name (mostly useful for testing a single rule in isolation)."""

    for rule in RULES:
        if rule.name == name:
            return rule
    raise KeyError(name)
