from pgvector_mcp.schemas.documents import Document, ScoredDocument
from pgvector_mcp.schemas.introspection import (
    UNKNOWN_DIMENSION,
    ColumnInfo,
    DatabaseStats,
    SchemaReport,
    TableDescriptor,
    TableStats,
)
from pgvector_mcp.schemas.status import StatusReport

__all__ = [
    "UNKNOWN_DIMENSION",
    "ColumnInfo",
    "DatabaseStats",
    "Document",
    "SchemaReport",
    "ScoredDocument",
    "StatusReport",
    "TableDescriptor",
    "TableStats",
]
