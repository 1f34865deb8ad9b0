"""Translator data models (Pydantic).

These models are the contract between schema introspection, the rule table and the HTTP layer.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ColumnDescriptor(BaseModel):
    """A table column as reported by the engine, in schema-declaration order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    declared_type: str = ""


class TranslationResult(BaseModel):
    """The SQL produced for one phrase.

    `warning` is only set when the phrase could not be understood at all and a sample query was
    produced instead.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sql_text: str
    warning: str | None = None
    rule: str = "fallback"
    is_aggregate: bool = False
