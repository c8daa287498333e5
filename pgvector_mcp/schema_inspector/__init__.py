from pgvector_mcp.schema_inspector.identifiers import (
    qualified_name,
    quote_identifier,
    validate_identifier,
)
from pgvector_mcp.schema_inspector.inspector import (
    DEFAULT_EMBEDDING_COLUMN,
    SchemaInspector,
    embedding_column_rank,
    is_embedding_column,
    pick_embedding_column,
)

__all__ = [
    "DEFAULT_EMBEDDING_COLUMN",
    "SchemaInspector",
    "embedding_column_rank",
    "is_embedding_column",
    "pick_embedding_column",
    "qualified_name",
    "quote_identifier",
    "validate_identifier",
]
