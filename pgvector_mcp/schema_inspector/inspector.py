"""
Runtime discovery of table layout via information_schema.

Nothing here is cached: every call reads the live catalog because tables and
columns can change between tool invocations.
"""

import logging

from sqlalchemy import text as sa_text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from pgvector_mcp.errors import QueryError
from pgvector_mcp.schema_inspector.identifiers import qualified_name, quote_identifier
from pgvector_mcp.schemas.introspection import (
    UNKNOWN_DIMENSION,
    ColumnInfo,
    Dimension,
    TableDescriptor,
)

logger = logging.getLogger("pgvector.schema")

DEFAULT_EMBEDDING_COLUMN = "embedding"
VECTOR_TYPE = "vector"
USER_DEFINED = "USER-DEFINED"

_COLUMN_PRIORITY = {"embedding": 0, "content_embedding": 1}


def embedding_column_rank(name: str) -> int:
    return _COLUMN_PRIORITY.get(name, 2)


def is_embedding_column(name: str, data_type: str | None, udt_name: str | None) -> bool:
    """A column holds embeddings if its name says so or it is a pgvector column."""
    if "embedding" in name:
        return True
    return data_type == USER_DEFINED and udt_name == VECTOR_TYPE


def pick_embedding_column(candidates: list[str]) -> str:
    """Choose the best candidate: ``embedding``, then ``content_embedding``, then
    the first remaining one in catalog order. Falls back to ``embedding``."""
    if not candidates:
        return DEFAULT_EMBEDDING_COLUMN
    # sorted() is stable, so ties keep ordinal order
    return sorted(candidates, key=embedding_column_rank)[0]


class SchemaInspector:
    """Reads the catalog of one PostgreSQL schema."""

    def __init__(self, schema: str = "public"):
        self.schema = schema

    def qualified(self, table: str) -> str:
        return qualified_name(self.schema, table)

    async def require_table(self, conn: AsyncConnection, table: str) -> str:
        """Check ``table`` against the live catalog and return its quoted name."""
        result = await conn.execute(
            sa_text("""
                SELECT 1 FROM information_schema.tables
                WHERE table_schema = :schema AND table_name = :table
                  AND table_type IN ('BASE TABLE', 'VIEW')
            """),
            {"schema": self.schema, "table": table},
        )
        if result.first() is None:
            raise QueryError(f'Table "{table}" does not exist in schema "{self.schema}"')
        return self.qualified(table)

    async def resolve_embedding_column(self, conn: AsyncConnection, table: str) -> str:
        """Name of the column of ``table`` that holds the vectors.

        This is best effort: when no candidate is found the literal
        ``embedding`` is returned and a missing column surfaces as a SQL error.
        """
        result = await conn.execute(
            sa_text("""
                SELECT column_name
                FROM information_schema.columns
                WHERE table_schema = :schema
                  AND table_name = :table
                  AND (column_name LIKE :pattern
                       OR (data_type = :user_defined AND udt_name = :vector_type))
                ORDER BY ordinal_position
            """),
            {
                "schema": self.schema,
                "table": table,
                "pattern": "%embedding%",
                "user_defined": USER_DEFINED,
                "vector_type": VECTOR_TYPE,
            },
        )
        candidates = [row[0] for row in result]
        column = pick_embedding_column(candidates)
        if not candidates:
            logger.info("No embedding-like column on %s, assuming '%s'", table, column)
        return column

    async def describe_all_tables(self, conn: AsyncConnection) -> list[TableDescriptor]:
        """Describe every base table of the schema, including empty ones."""
        result = await conn.execute(
            sa_text("""
                SELECT t.table_name, c.column_name, c.data_type, c.is_nullable,
                       c.column_default, c.udt_name, c.character_maximum_length
                FROM information_schema.tables t
                LEFT JOIN information_schema.columns c
                  ON c.table_schema = t.table_schema AND c.table_name = t.table_name
                WHERE t.table_schema = :schema AND t.table_type = 'BASE TABLE'
                ORDER BY t.table_name, c.ordinal_position
            """),
            {"schema": self.schema},
        )

        tables: dict[str, TableDescriptor] = {}
        for row in result.mappings().all():
            descriptor = tables.setdefault(row["table_name"], TableDescriptor(name=row["table_name"]))
            # LEFT JOIN yields one all-NULL column row for tables without columns
            if row["column_name"] is None:
                continue
            descriptor.columns.append(ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
                default=row["column_default"],
                udt_name=row["udt_name"],
                max_length=row["character_maximum_length"],
            ))
            if is_embedding_column(row["column_name"], row["data_type"], row["udt_name"]):
                descriptor.embedding_columns.append(row["column_name"])

        for descriptor in tables.values():
            descriptor.row_count = await self._count_rows(conn, descriptor.name)
            for column in descriptor.embedding_columns:
                descriptor.vector_dimensions[column] = await self._sample_dimension(
                    conn, descriptor.name, column
                )

        logger.info("Described %d tables in schema %s", len(tables), self.schema)
        return list(tables.values())

    async def _count_rows(self, conn: AsyncConnection, table: str) -> int | None:
        """Row count of ``table``, or None when it cannot be read."""
        try:
            async with conn.begin_nested():
                result = await conn.execute(sa_text(f"SELECT COUNT(*) FROM {self.qualified(table)}"))
                count = result.scalar()
        except SQLAlchemyError as e:
            logger.warning("Could not count rows of %s: %s", table, e)
            return None
        return int(count or 0)

    async def _sample_dimension(self, conn: AsyncConnection, table: str, column: str) -> Dimension:
        """Length of one non-null vector in ``column``, or ``"unknown"``.

        Runs under a SAVEPOINT so that a failing cast does not abort the
        outer transaction the remaining tables are read in.
        """
        col = quote_identifier(column)
        stmt = sa_text(
            f"SELECT array_length(CAST({col} AS real[]), 1) "
            f"FROM {self.qualified(table)} WHERE {col} IS NOT NULL LIMIT 1"
        )
        try:
            async with conn.begin_nested():
                result = await conn.execute(stmt)
                dimension = result.scalar()
        except SQLAlchemyError as e:
            logger.warning("Could not sample %s.%s for its dimension: %s", table, column, e)
            return UNKNOWN_DIMENSION
        if not dimension:
            return UNKNOWN_DIMENSION
        return int(dimension)
