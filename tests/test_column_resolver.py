"""Tests for the three-pass column resolver."""

from __future__ import annotations

from src.translate.columns import (
    column_contains_word,
    exact_match,
    first_matching,
    resolve_column,
    word_contains_column,
)


def test_exact_match_is_case_insensitive() -> None:
    assert resolve_column("AGE", ["id", "Age"]) == "Age"


def test_exact_match_beats_earlier_substring_match() -> None:
    assert resolve_column("name", ["first_name", "name"]) == "name"


def test_column_containing_word_takes_first_in_table_order() -> None:
    assert resolve_column("name", ["id", "first_name", "last_name"]) == "first_name"


def test_word_containing_column() -> None:
    assert resolve_column("ages", ["id", "age"]) == "age"


def test_unresolvable_word_returns_none() -> None:
    assert resolve_column("salary", ["id", "age"]) is None
    assert resolve_column("anything", []) is None


def test_resolution_is_deterministic() -> None:
    columns = ["id", "first_name", "age"]
    first = [resolve_column(w, columns) for w in ("name", "ages", "zip", "ID")]
    second = [resolve_column(w, columns) for w in reversed(("name", "ages", "zip", "ID"))]
    assert first == list(reversed(second))
    assert first == ["first_name", "age", None, "id"]


def test_passes_are_independent_predicates() -> None:
    columns = ["customer_id", "id"]
    assert first_matching("id", columns, exact_match) == "id"
    assert first_matching("id", columns, column_contains_word) == "customer_id"
    assert first_matching("uuid", columns, word_contains_column) == "id"
    assert first_matching("uuid", columns, exact_match) is None
