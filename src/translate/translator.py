"""Phrase-to-SQL dispatch.

Strategy:
    1) Try rules in declaration order against the lower-cased phrase.
    2) The first rule whose builder produces SQL wins; a `None` result moves on to the next rule.
    3) If nothing matches, extract WHERE conditions alone; failing that, return a sample query
       with a warning.

The translator never raises for a phrase. Non-aggregate statements get a default `LIMIT 100`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.translate.clauses import extract_where_conditions
from src.translate.dictionaries import DEFAULT_LIMIT, LIMIT_EXEMPT_MARKERS
from src.translate.normalize import normalize_phrase
from src.translate.rules import RULES, Rule, assemble, where_clause
from src.translate.schema import ColumnDescriptor, TranslationResult

logger = logging.getLogger(__name__)

UNDERSTOOD_NOTHING_WARNING = "Could not understand query, showing sample data"


def column_names(columns: Sequence[ColumnDescriptor | str]) -> list[str]:
    """Accept descriptors or bare names and return the names in order."""

    return [c.name if isinstance(c, ColumnDescriptor) else str(c) for c in columns]


def apply_safety_limit(sql: str) -> str:
    """Append the default LIMIT unless the text already has a limit or an aggregate call.

    The check is a plain substring test on the lower-cased SQL, so a literal `count(` or `limit`
    anywhere in the statement (including inside a WHERE value) also suppresses it.
    """

    lowered = sql.lower()
    if any(marker in lowered for marker in LIMIT_EXEMPT_MARKERS):
        return sql
    return f"{sql} LIMIT {DEFAULT_LIMIT}"


def match_rule(
        phrase: str,
        table_name: str,
        columns: Sequence[str],
        rules: Sequence[Rule] = RULES,
) -> tuple[Rule, str] | None:
    """Return the first rule that matches and builds, with its raw SQL."""

    normalized = normalize_phrase(phrase)
    for rule in rules:
        if not rule.matches(normalized):
            continue
        sql = rule.build(phrase, table_name, columns)
        if sql is None:
            logger.debug("rule skipped rule=%s reason=partial_match", rule.name)
            continue
        return rule, sql
    return None


def translate(
        phrase: str,
        table_name: str,
        columns: Sequence[ColumnDescriptor | str],
) -> TranslationResult:
    """Translate an English phrase into one SQL statement against `table_name`."""

    names = column_names(columns)

    matched = match_rule(phrase, table_name, names)
    if matched is not None:
        rule, sql = matched
        return TranslationResult(
            sql_text=apply_safety_limit(sql),
            rule=rule.name,
            is_aggregate=rule.is_aggregate,
        )

    conditions = extract_where_conditions(phrase, names)
    if conditions:
        sql = assemble(f"SELECT * FROM {table_name}", where_clause(conditions))
        return TranslationResult(sql_text=f"{sql} LIMIT {DEFAULT_LIMIT}")

    logger.info("no rule matched table=%s", table_name)
    return TranslationResult(
        sql_text=f"SELECT * FROM {table_name} LIMIT {DEFAULT_LIMIT}",
        warning=UNDERSTOOD_NOTHING_WARNING,
    )
