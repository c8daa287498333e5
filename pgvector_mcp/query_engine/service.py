"""
QueryEngine: similarity search, metadata search, inserts and statistics over
whatever tables the schema inspector finds.

Embeddings are computed before a connection is borrowed so the pool is not
held while waiting on the provider.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from pgvector_mcp.database import ConnectionManager
from pgvector_mcp.embedding_provider import EmbeddingProvider
from pgvector_mcp.errors import QueryError
from pgvector_mcp.query_engine import statements
from pgvector_mcp.schema_inspector import SchemaInspector, quote_identifier
from pgvector_mcp.schemas import (
    DatabaseStats,
    Document,
    SchemaReport,
    ScoredDocument,
    TableStats,
)

logger = logging.getLogger("pgvector.query")

VECTOR_SEARCH_MAX_LIMIT = 50
METADATA_SEARCH_MAX_LIMIT = 100

USAGE_HINTS = [
    "vector_search works on tables listed with a non-empty 'embedding_columns'.",
    "When a table has several embedding columns, 'embedding' is used first, then 'content_embedding'.",
    "vector_search and insert_document expect 'content', 'metadata' and 'created_at' columns.",
    "metadata_search matches each filter as a case-insensitive substring of metadata->>key.",
    "A vector dimension of 'unknown' means the column could not be sampled (empty table or non-vector type).",
    "A row_count of null means the table could not be read with the current privileges.",
]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class QueryEngine:
    """Runs document queries against a schema discovered at call time."""

    def __init__(
        self,
        connections: ConnectionManager,
        inspector: SchemaInspector,
        provider: EmbeddingProvider,
        default_table: str = "document_embeddings",
    ):
        self.connections = connections
        self.inspector = inspector
        self.provider = provider
        self.default_table = default_table

    async def vector_search(
        self,
        query: str,
        table: str | None = None,
        limit: int = 5,
        similarity_threshold: float = 0.5,
    ) -> list[ScoredDocument]:
        """Rows whose cosine similarity to ``query`` exceeds the threshold, best first.

        Similarity is ``1 - (embedding <=> query)``; pgvector's ``<=>`` is cosine
        distance, so ordering by it ascending puts the closest rows first.
        """
        table = table or self.default_table
        limit = int(clamp(limit, 1, VECTOR_SEARCH_MAX_LIMIT))
        threshold = float(clamp(similarity_threshold, 0.0, 1.0))

        query_vec = statements.vector_literal(await self.provider.embed(query))

        async with self.connections.connection() as conn:
            try:
                qualified = await self.inspector.require_table(conn, table)
                column = await self.inspector.resolve_embedding_column(conn, table)
                result = await conn.execute(
                    statements.vector_search_statement(qualified, quote_identifier(column)),
                    {"query_vec": query_vec, "threshold": threshold, "limit": limit},
                )
                rows = result.mappings().all()
            except SQLAlchemyError as e:
                raise QueryError(f"Vector search on {table} failed: {_driver_message(e)}") from e

        documents = [ScoredDocument.model_validate(dict(row)) for row in rows]
        logger.info(
            "vector_search on %s returned %d rows (top similarity: %.3f)",
            table,
            len(documents),
            documents[0].similarity if documents else 0,
        )
        return documents

    async def metadata_search(
        self,
        filters: Mapping[str, Any] | None = None,
        table: str | None = None,
        limit: int = 10,
    ) -> list[Document]:
        """Most recent rows whose metadata matches every filter (substring, case-insensitive)."""
        table = table or self.default_table
        limit = int(clamp(limit, 1, METADATA_SEARCH_MAX_LIMIT))
        items = list((filters or {}).items())

        params: dict[str, Any] = {"limit": limit}
        for i, (key, value) in enumerate(items):
            params[f"key_{i}"] = str(key)
            params[f"value_{i}"] = statements.like_pattern(str(value))

        async with self.connections.connection() as conn:
            try:
                qualified = await self.inspector.require_table(conn, table)
                result = await conn.execute(
                    statements.metadata_search_statement(qualified, len(items)), params,
                )
                rows = result.mappings().all()
            except SQLAlchemyError as e:
                raise QueryError(f"Metadata search on {table} failed: {_driver_message(e)}") from e

        logger.info("metadata_search on %s with %d filters returned %d rows", table, len(items), len(rows))
        return [Document.model_validate(dict(row)) for row in rows]

    async def insert_document(
        self,
        content: str,
        metadata: Mapping[str, Any] | None = None,
        table: str | None = None,
    ) -> int:
        """Embed ``content`` and insert it. Returns the generated id."""
        table = table or self.default_table
        try:
            metadata_json = json.dumps(dict(metadata or {}))
        except (TypeError, ValueError) as e:
            raise QueryError(f"Metadata is not JSON-serializable: {e}") from e

        embedding = statements.vector_literal(await self.provider.embed(content))

        async with self.connections.connection() as conn:
            try:
                qualified = await self.inspector.require_table(conn, table)
                column = await self.inspector.resolve_embedding_column(conn, table)
                result = await conn.execute(
                    statements.insert_document_statement(qualified, quote_identifier(column)),
                    {"content": content, "metadata": metadata_json, "embedding": embedding},
                )
                document_id = result.scalar_one()
                await conn.commit()
            except SQLAlchemyError as e:
                raise QueryError(f"Insert into {table} failed: {_driver_message(e)}") from e

        logger.info("Inserted document %s into %s", document_id, table)
        return document_id

    async def get_statistics(self) -> DatabaseStats:
        """Row counts for every table carrying a vector-typed embedding column."""
        stats = DatabaseStats()
        counts: dict[str, int] = {}

        async with self.connections.connection() as conn:
            try:
                result = await conn.execute(
                    statements.VECTOR_COLUMNS_STATEMENT,
                    {"schema": self.inspector.schema, "pattern": "%embedding%"},
                )
                columns = [(row[0], row[1]) for row in result]
                for table_name, column_name in columns:
                    if table_name not in counts:
                        count = await conn.execute(
                            statements.count_rows_statement(self.inspector.qualified(table_name))
                        )
                        counts[table_name] = int(count.scalar() or 0)
                    stats.tables.append(TableStats(
                        name=table_name,
                        embedding_column=column_name,
                        document_count=counts[table_name],
                    ))
            except SQLAlchemyError as e:
                raise QueryError(f"Failed to collect database statistics: {_driver_message(e)}") from e

        # A table with two embedding columns is still one set of documents
        stats.total_documents = sum(counts.values())
        return stats

    async def get_schemas(self) -> SchemaReport:
        async with self.connections.connection() as conn:
            try:
                tables = await self.inspector.describe_all_tables(conn)
            except SQLAlchemyError as e:
                raise QueryError(f"Schema introspection failed: {_driver_message(e)}") from e
        return SchemaReport(tables=tables, usage_hints=list(USAGE_HINTS))


def _driver_message(error: SQLAlchemyError) -> str:
    """The driver's own message, without SQLAlchemy's statement dump."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)
