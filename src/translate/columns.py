"""Column resolver: map a user word onto a real column name.

Resolution runs three independent passes in strict order and the first pass with a hit wins:
    1) case-insensitive equality,
    2) the column name contains the word,
    3) the word contains the column name.

Within a pass the first column in table order wins. `None` means the caller drops whatever it was
building; it is never an error.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

ColumnPredicate = Callable[[str, str], bool]


def exact_match(word: str, column: str) -> bool:
    return column == word


def column_contains_word(word: str, column: str) -> bool:
    return word in column


def word_contains_column(word: str, column: str) -> bool:
    return column in word


_PASSES: tuple[ColumnPredicate, ...] = (exact_match, column_contains_word, word_contains_column)


def first_matching(word: str, columns: Sequence[str], predicate: ColumnPredicate) -> str | None:
    """Return the first column (in table order) satisfying `predicate`, comparing lower-cased."""

    lowered = word.lower()
    for column in columns:
        if predicate(lowered, column.lower()):
            return column
    return None


def resolve_column(word: str, columns: Sequence[str]) -> str | None:
    """Resolve `word` to a column name from `columns`, or `None`."""

    for predicate in _PASSES:
        column = first_matching(word, columns, predicate)
        if column is not None:
            return column
    return None
