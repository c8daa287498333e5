"""Pydantic schemas for document rows returned by the query engine."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Document(BaseModel):
    id: int | UUID | str
    content: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _content_not_null(cls, value: Any) -> str:
        return value or ""

    @field_validator("metadata", mode="before")
    @classmethod
    def _decode_metadata(cls, value: Any) -> dict[str, Any]:
        # asyncpg hands json/jsonb back as text
        if value is None:
            return {}
        if isinstance(value, (str, bytes)):
            value = json.loads(value)
        if not isinstance(value, dict):
            return {"value": value}
        return value


class ScoredDocument(Document):
    similarity: float
