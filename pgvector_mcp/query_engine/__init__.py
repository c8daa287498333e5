from pgvector_mcp.query_engine.service import (
    METADATA_SEARCH_MAX_LIMIT,
    USAGE_HINTS,
    VECTOR_SEARCH_MAX_LIMIT,
    QueryEngine,
    clamp,
)

__all__ = [
    "METADATA_SEARCH_MAX_LIMIT",
    "USAGE_HINTS",
    "VECTOR_SEARCH_MAX_LIMIT",
    "QueryEngine",
    "clamp",
]
