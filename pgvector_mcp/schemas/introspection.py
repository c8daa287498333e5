"""Pydantic schemas for schema introspection and statistics."""

from typing import Literal

from pydantic import BaseModel, Field

UNKNOWN_DIMENSION = "unknown"

Dimension = int | Literal["unknown"]


class ColumnInfo(BaseModel):
    name: str
    data_type: str
    nullable: bool = True
    default: str | None = None
    udt_name: str | None = None
    max_length: int | None = None


class TableDescriptor(BaseModel):
    name: str
    columns: list[ColumnInfo] = Field(default_factory=list)
    embedding_columns: list[str] = Field(default_factory=list)
    vector_dimensions: dict[str, Dimension] = Field(default_factory=dict)
    # None when the table could not be read (e.g. SELECT not granted)
    row_count: int | None = 0


class SchemaReport(BaseModel):
    tables: list[TableDescriptor] = Field(default_factory=list)
    usage_hints: list[str] = Field(default_factory=list)


class TableStats(BaseModel):
    name: str
    embedding_column: str
    document_count: int = 0


class DatabaseStats(BaseModel):
    tables: list[TableStats] = Field(default_factory=list)
    total_documents: int = 0
