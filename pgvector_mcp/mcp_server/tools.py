"""Tool definitions advertised over MCP.

The list is computed per request: embedding tools only appear when an
embedding provider is configured.
"""

from mcp.types import Tool

from pgvector_mcp.query_engine import METADATA_SEARCH_MAX_LIMIT, VECTOR_SEARCH_MAX_LIMIT

VECTOR_SEARCH = "vector_search"
INSERT_DOCUMENT = "insert_document"
METADATA_SEARCH = "metadata_search"
GET_DATABASE_STATS = "get_database_stats"
GET_TABLE_SCHEMAS = "get_table_schemas"
CHECK_STATUS = "check_status"

EMBEDDING_TOOLS = (VECTOR_SEARCH, INSERT_DOCUMENT)
ALWAYS_AVAILABLE_TOOLS = (METADATA_SEARCH, GET_DATABASE_STATS, GET_TABLE_SCHEMAS, CHECK_STATUS)


def _table_property(default_table: str, verb: str) -> dict:
    return {
        "type": "string",
        "description": f"Table name to {verb} (default: {default_table})",
        "default": default_table,
    }


def enabled_tool_names(embeddings_enabled: bool) -> list[str]:
    names = list(EMBEDDING_TOOLS) if embeddings_enabled else []
    return names + list(ALWAYS_AVAILABLE_TOOLS)


def build_tools(provider_name: str, embeddings_enabled: bool, default_table: str) -> list[Tool]:
    tools: list[Tool] = []

    if embeddings_enabled:
        tools.append(Tool(
            name=VECTOR_SEARCH,
            description=(
                "Perform semantic vector similarity search on PostgreSQL with pgvector "
                f"(using {provider_name} embeddings)"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query text to find similar content"},
                    "table": _table_property(default_table, "search in"),
                    "limit": {
                        "type": "number",
                        "description": "Maximum number of results to return (default: 5)",
                        "default": 5,
                        "minimum": 1,
                        "maximum": VECTOR_SEARCH_MAX_LIMIT,
                    },
                    "similarity_threshold": {
                        "type": "number",
                        "description": "Minimum similarity threshold (0-1, default: 0.5)",
                        "default": 0.5,
                        "minimum": 0,
                        "maximum": 1,
                    },
                },
                "required": ["query"],
            },
        ))
        tools.append(Tool(
            name=INSERT_DOCUMENT,
            description=(
                "Insert a new document with automatic embedding generation "
                f"(using {provider_name} embeddings)"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "Document content to embed and store"},
                    "metadata": {
                        "type": "object",
                        "description": "Additional metadata to store with the document",
                        "additionalProperties": True,
                    },
                    "table": _table_property(default_table, "insert into"),
                },
                "required": ["content"],
            },
        ))

    tools.append(Tool(
        name=METADATA_SEARCH,
        description="Search documents by metadata filters (case-insensitive substring match)",
        inputSchema={
            "type": "object",
            "properties": {
                "filters": {
                    "type": "object",
                    "description": "Key-value pairs to filter by metadata fields",
                    "additionalProperties": {"type": "string"},
                },
                "table": _table_property(default_table, "search in"),
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return (default: 10)",
                    "default": 10,
                    "minimum": 1,
                    "maximum": METADATA_SEARCH_MAX_LIMIT,
                },
            },
            "required": ["filters"],
        },
    ))
    tools.append(Tool(
        name=GET_DATABASE_STATS,
        description="Get statistics about vector-enabled tables in the database",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ))
    tools.append(Tool(
        name=GET_TABLE_SCHEMAS,
        description=(
            "Describe every table: columns, embedding columns, vector dimensions and row counts"
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ))
    tools.append(Tool(
        name=CHECK_STATUS,
        description="Report embedding provider, database connection status, enabled tools and limitations",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ))
    return tools
