"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.sql.identifiers import validate_identifier
from src.sql.schema import TableDefinition


class DatabaseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return validate_identifier(value, kind="database name")


class TableCreate(TableDefinition):
    """A table definition plus the database it belongs to."""

    database: str = Field(min_length=1)

    def definition(self) -> TableDefinition:
        return TableDefinition.model_validate(self.model_dump(exclude={"database"}))


class ConvertRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)
    database: str = Field(min_length=1)
    table: str = Field(min_length=1)


class ConvertResponse(BaseModel):
    original_text: str
    sql_query: str
    results: list[dict[str, Any]]
    warning: str | None = None


class QueryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    database: str = Field(min_length=1)
    sql: str = Field(min_length=1)


class RowPayload(BaseModel):
    """Column name to value mapping for inserts and updates."""

    data: dict[str, Any]
