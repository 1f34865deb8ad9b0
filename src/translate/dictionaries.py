"""English keyword dictionaries for the rule table and clause extractors.

These sets are small and fixed. Order matters wherever a tuple is used: earlier entries are tried
first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

GREATER_THAN_PHRASES: tuple[str, ...] = ("greater than", "more than", "above", "over")
LESS_THAN_PHRASES: tuple[str, ...] = ("less than", "fewer than", "below", "under")
EQUALITY_PHRASES: tuple[str, ...] = ("equal to", "exactly", "is")
CONTAINMENT_PHRASES: tuple[str, ...] = ("containing", "contain", "like", "with")
NAMED_PHRASES: tuple[str, ...] = ("named", "called", "name is", "is")

# Columns tried, in order, for the "named X" / "called X" condition.
NAME_COLUMN_WORDS: tuple[str, ...] = ("name", "title")

# Substrings that hint a column is numeric; used when an aggregate target is unclear.
NUMERIC_COLUMN_HINTS: tuple[str, ...] = ("id", "age", "salary", "price", "amount")

# Lower-cased substrings that exempt a statement from the default LIMIT.
LIMIT_EXEMPT_MARKERS: tuple[str, ...] = ("limit", "count(", "avg(", "sum(", "max(", "min(")

DEFAULT_LIMIT = "100"


@dataclass(frozen=True)
class Aggregate:
    """An aggregate SQL function, its trigger keywords and the alias prefix of its result."""

    function: str
    keywords: tuple[str, ...]
    alias_prefix: str


AVERAGE = Aggregate(function="AVG", keywords=("avg", "average", "mean"), alias_prefix="average")
TOTAL = Aggregate(function="SUM", keywords=("sum", "total"), alias_prefix="total")
MAXIMUM = Aggregate(
    function="MAX",
    keywords=("max", "maximum", "highest", "largest"),
    alias_prefix="max",
)
MINIMUM = Aggregate(
    function="MIN",
    keywords=("min", "minimum", "lowest", "smallest"),
    alias_prefix="min",
)


def alternation(phrases: tuple[str, ...]) -> str:
    """Join phrases into a non-capturing regex alternation, keeping their order."""

    return "(?:" + "|".join(re.escape(p) for p in phrases) + ")"
