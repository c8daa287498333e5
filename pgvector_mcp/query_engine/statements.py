"""Parameterized SQL templates.

Only quoted identifiers (already checked against the live catalog) are
formatted into these strings. Every value travels as a bound parameter.
"""

from sqlalchemy import TextClause
from sqlalchemy import text as sa_text


def vector_search_statement(table: str, column: str) -> TextClause:
    return sa_text(f"""
        SELECT id, content, metadata,
               1 - ({column} <=> CAST(:query_vec AS vector)) AS similarity,
               created_at
        FROM {table}
        WHERE 1 - ({column} <=> CAST(:query_vec AS vector)) > :threshold
        ORDER BY {column} <=> CAST(:query_vec AS vector)
        LIMIT :limit
    """)


def metadata_search_statement(table: str, filter_count: int) -> TextClause:
    """One ``metadata ->> :key_n ILIKE :value_n`` predicate per filter, ANDed."""
    predicates = [
        f"metadata ->> CAST(:key_{i} AS text) ILIKE :value_{i}"
        for i in range(filter_count)
    ]
    where = f"WHERE {' AND '.join(predicates)}" if predicates else ""
    return sa_text(f"""
        SELECT id, content, metadata, created_at
        FROM {table}
        {where}
        ORDER BY created_at DESC
        LIMIT :limit
    """)


def insert_document_statement(table: str, column: str) -> TextClause:
    return sa_text(f"""
        INSERT INTO {table} (content, metadata, {column}, created_at)
        VALUES (:content, :metadata, CAST(:embedding AS vector), CURRENT_TIMESTAMP)
        RETURNING id
    """)


VECTOR_COLUMNS_STATEMENT = sa_text("""
    SELECT table_name, column_name
    FROM information_schema.columns
    WHERE table_schema = :schema
      AND data_type = 'USER-DEFINED'
      AND udt_name = 'vector'
      AND column_name LIKE :pattern
    ORDER BY table_name, ordinal_position
""")


def count_rows_statement(table: str) -> TextClause:
    return sa_text(f"SELECT COUNT(*) FROM {table}")


def vector_literal(vector: list[float]) -> str:
    """Format a vector as a pgvector text literal: '[0.1,0.2,...]'."""
    return "[" + ",".join(str(float(v)) for v in vector) + "]"


def like_pattern(value: str) -> str:
    """Substring pattern for ILIKE with the LIKE wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
