"""
ToolDispatcher: routes a named tool call to the query engine and renders the
result as MCP text content.

Every failure leaves here as an ``McpError``: METHOD_NOT_FOUND for unknown or
disabled tools, INVALID_PARAMS for bad arguments, INTERNAL_ERROR for
everything raised further down.
"""

import json
import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData, TextContent, Tool

from pgvector_mcp.database import ConnectionStatus
from pgvector_mcp.dependencies import ServerContext
from pgvector_mcp.errors import PgVectorMCPError, QueryError
from pgvector_mcp.mcp_server import rendering
from pgvector_mcp.mcp_server.tools import (
    CHECK_STATUS,
    GET_DATABASE_STATS,
    GET_TABLE_SCHEMAS,
    INSERT_DOCUMENT,
    METADATA_SEARCH,
    VECTOR_SEARCH,
    build_tools,
    enabled_tool_names,
)
from pgvector_mcp.schema_inspector import validate_identifier
from pgvector_mcp.schemas import StatusReport

logger = logging.getLogger("pgvector.mcp")
access_logger = logging.getLogger("pgvector.access")

DISABLED_TOOL_MESSAGES = {
    VECTOR_SEARCH: "Vector search is disabled.",
    INSERT_DOCUMENT: "Document insertion with embeddings is disabled.",
}


def _error(code: int, message: str) -> McpError:
    return McpError(ErrorData(code=code, message=message))


class ToolDispatcher:
    """Tool surface of the server, independent of the stdio transport."""

    def __init__(self, context: ServerContext):
        self.context = context
        self.settings = context.settings

    @property
    def embeddings_enabled(self) -> bool:
        return self.context.provider.enabled

    def enabled_tools(self) -> list[str]:
        return enabled_tool_names(self.embeddings_enabled)

    def list_tools(self) -> list[Tool]:
        return build_tools(
            provider_name=self.context.provider.name,
            embeddings_enabled=self.embeddings_enabled,
            default_table=self.settings.default_table,
        )

    def status_report(self) -> StatusReport:
        connections = self.context.connections
        limitations = []
        if not self.embeddings_enabled:
            limitations.append(
                "No embedding provider configured: vector_search and insert_document are disabled. "
                "Set AZURE_OPENAI_API_KEY + AZURE_OPENAI_ENDPOINT or HUGGINGFACE_API_KEY."
            )
        if connections.status is ConnectionStatus.NO_URL:
            limitations.append("DATABASE_URL is not set: all database tools will fail.")
        elif connections.status is ConnectionStatus.SKIPPED_HEALTH_CHECK:
            limitations.append("Database health check skipped (diagnostic mode): database tools will fail.")
        elif connections.status is ConnectionStatus.FAILED:
            limitations.append(f"Database connection failed: {connections.last_error}")
        elif connections.status is ConnectionStatus.NOT_ATTEMPTED:
            limitations.append("Database connection not attempted yet; it will be opened on first use.")

        return StatusReport(
            server=self.settings.mcp_server_name,
            version=self.settings.mcp_server_version,
            embedding_provider=self.context.provider.name,
            connection_status=connections.status.value,
            database=connections.describe_target(),
            enabled_tools=self.enabled_tools(),
            limitations=limitations,
        )

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> list[TextContent]:
        arguments = arguments or {}
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        status = "ok"
        try:
            text = await self._dispatch(name, arguments)
        except McpError as e:
            status = f"error:{e.error.code}"
            raise
        except PgVectorMCPError as e:
            status = f"error:{INTERNAL_ERROR}"
            logger.warning("Tool %s failed: %s", name, e)
            raise _error(INTERNAL_ERROR, f"Tool execution failed: {e}") from e
        except Exception as e:
            status = f"error:{INTERNAL_ERROR}"
            logger.exception("Unexpected error in tool %s", name)
            raise _error(INTERNAL_ERROR, f"Tool execution failed: {e}") from e
        finally:
            access_logger.info(json.dumps({
                "request_id": request_id,
                "tool": name,
                "status": status,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 1),
            }))

        return [TextContent(type="text", text=text)]

    async def _dispatch(self, name: str, arguments: Mapping[str, Any]) -> str:
        engine = self.context.engine
        max_chars = self.settings.content_preview_chars

        if name in DISABLED_TOOL_MESSAGES and not self.embeddings_enabled:
            raise _error(
                METHOD_NOT_FOUND,
                f"{DISABLED_TOOL_MESSAGES[name]} No embedding provider configured. "
                "Please set up Azure OpenAI or Hugging Face credentials.",
            )

        if name == VECTOR_SEARCH:
            results = await engine.vector_search(
                query=_required_str(arguments, "query"),
                table=self._table(arguments),
                limit=int(_number(arguments, "limit", 5)),
                similarity_threshold=_number(arguments, "similarity_threshold", 0.5),
            )
            return rendering.render_vector_results(results, max_chars)

        if name == INSERT_DOCUMENT:
            document_id = await engine.insert_document(
                content=_required_str(arguments, "content"),
                metadata=_mapping(arguments, "metadata", required=False),
                table=self._table(arguments),
            )
            return rendering.render_insert(document_id)

        if name == METADATA_SEARCH:
            results = await engine.metadata_search(
                filters=_filters(arguments),
                table=self._table(arguments),
                limit=int(_number(arguments, "limit", 10)),
            )
            return rendering.render_metadata_results(results, max_chars)

        if name == GET_DATABASE_STATS:
            return rendering.render_stats(await engine.get_statistics())

        if name == GET_TABLE_SCHEMAS:
            return rendering.render_json(await engine.get_schemas())

        if name == CHECK_STATUS:
            return rendering.render_json(self.status_report())

        raise _error(METHOD_NOT_FOUND, f"Unknown tool: {name}")

    def _table(self, arguments: Mapping[str, Any]) -> str:
        table = arguments.get("table") or self.settings.default_table
        try:
            return validate_identifier(table, kind="table")
        except QueryError as e:
            raise _error(INVALID_PARAMS, str(e)) from e


def _required_str(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _error(INVALID_PARAMS, f"'{key}' is required and must be a non-empty string")
    return value


def _number(arguments: Mapping[str, Any], key: str, default: float) -> float:
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise _error(INVALID_PARAMS, f"'{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise _error(INVALID_PARAMS, f"'{key}' must be a number") from None


def _mapping(arguments: Mapping[str, Any], key: str, required: bool) -> dict[str, Any]:
    value = arguments.get(key)
    if value is None and not required:
        return {}
    if not isinstance(value, Mapping):
        raise _error(INVALID_PARAMS, f"'{key}' must be an object")
    return dict(value)


def _filters(arguments: Mapping[str, Any]) -> dict[str, str]:
    """Metadata filters as str -> str. Keys are bound as parameters, never formatted."""
    filters = _mapping(arguments, "filters", required=False)
    cleaned = {}
    for key, value in filters.items():
        if not isinstance(key, str) or not key:
            raise _error(INVALID_PARAMS, "Metadata filter keys must be non-empty strings")
        if isinstance(value, (dict, list)) or value is None:
            raise _error(INVALID_PARAMS, f"Metadata filter '{key}' must be a string")
        cleaned[key] = str(value)
    return cleaned
