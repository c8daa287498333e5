"""Pydantic schema for the status/capability report."""

from pydantic import BaseModel, Field


class StatusReport(BaseModel):
    server: str
    version: str
    embedding_provider: str
    connection_status: str
    database: str | None = None
    enabled_tools: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
