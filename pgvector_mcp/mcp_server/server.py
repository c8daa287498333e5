"""pgvector MCP server using the official Python SDK.

Exposes up to 6 tools over stdio:
- vector_search / insert_document: only when an embedding provider is configured
- metadata_search, get_database_stats, get_table_schemas, check_status: always
"""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolRequest, CallToolResult, ServerResult, Tool

from pgvector_mcp.config import Settings
from pgvector_mcp.dependencies import ServerContext, build_context
from pgvector_mcp.mcp_server.dispatcher import ToolDispatcher

logger = logging.getLogger("pgvector.mcp")


def create_server(context: ServerContext) -> Server:
    """Create the MCP server and register the tool handlers."""
    settings = context.settings
    server = Server(settings.mcp_server_name, version=settings.mcp_server_version)
    dispatcher = ToolDispatcher(context)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return dispatcher.list_tools()

    # @server.call_tool() turns every exception into an isError result;
    # registered directly, an McpError reaches the client with its code.
    async def call_tool(request: CallToolRequest) -> ServerResult:
        content = await dispatcher.call_tool(request.params.name, request.params.arguments)
        return ServerResult(CallToolResult(content=content, isError=False))

    server.request_handlers[CallToolRequest] = call_tool

    return server


async def run_server(settings: Settings):
    """Run the MCP server over stdio.

    A database that is missing or unreachable does not stop the server; it
    starts in degraded mode and ``check_status`` explains why.
    """
    context = build_context(settings)
    status = await context.connections.initialize()
    logger.info(
        "Starting %s %s (provider=%s, database=%s)",
        settings.mcp_server_name,
        settings.mcp_server_version,
        context.provider.name,
        status.value,
    )

    server = create_server(context)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await context.aclose()
        logger.info("Shutting down %s", settings.mcp_server_name)
