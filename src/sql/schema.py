"""Table definition models (Pydantic).

These are what the table-creation form submits; the statement builder and the metadata store both
consume them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.sql.identifiers import validate_data_type, validate_identifier


class ColumnDefinition(BaseModel):
    """One column of a table to be created."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    column_name: str
    data_type: str
    is_primary_key: bool = False
    is_nullable: bool = True
    description: str = ""

    @field_validator("column_name")
    @classmethod
    def validate_column_name(cls, value: str) -> str:
        return validate_identifier(value, kind="column name")

    @field_validator("data_type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        return validate_data_type(value)


class TableDefinition(BaseModel):
    """A table to be created: name, optional description and its columns."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    table_name: str
    description: str = ""
    columns: list[ColumnDefinition] = Field(min_length=1)

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, value: str) -> str:
        return validate_identifier(value, kind="table name")

    @model_validator(mode="after")
    def validate_columns(self) -> TableDefinition:
        """Column names must be unique (case-insensitively) and at most one may be the key."""

        seen: set[str] = set()
        for column in self.columns:
            key = column.column_name.lower()
            if key in seen:
                raise ValueError(f"Duplicate column name: {column.column_name}")
            seen.add(key)

        if sum(1 for c in self.columns if c.is_primary_key) > 1:
            raise ValueError("Only one column can be the primary key")
        return self
