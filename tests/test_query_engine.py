"""Tests for QueryEngine against the in-memory vector store."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import ProgrammingError

from pgvector_mcp.embedding_provider import DisabledEmbeddingProvider
from pgvector_mcp.errors import EmbeddingError, ProviderError, QueryError
from pgvector_mcp.query_engine import QueryEngine, clamp
from pgvector_mcp.query_engine.statements import like_pattern, vector_literal
from pgvector_mcp.schema_inspector import SchemaInspector
from tests.conftest import FakeConnection, FakeConnectionManager, FakeResult


@pytest.fixture
def engine(fake_connections, static_provider) -> QueryEngine:
    return QueryEngine(
        connections=fake_connections,
        inspector=SchemaInspector(),
        provider=static_provider,
    )


class TestHelpers:
    def test_clamp(self):
        assert clamp(0, 1, 50) == 1
        assert clamp(500, 1, 50) == 50
        assert clamp(7, 1, 50) == 7

    def test_vector_literal(self):
        assert vector_literal([1, 0.5, -2]) == "[1.0,0.5,-2.0]"

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("50%_off") == "%50\\%\\_off%"


class TestVectorSearch:
    @pytest.mark.asyncio
    async def test_insert_then_search_finds_document(self, engine, store):
        doc_id = await engine.insert_document("The quick brown fox", {"category": "test"})
        await engine.insert_document("Completely unrelated zzz", {"category": "other"})

        results = await engine.vector_search("The quick brown fox", similarity_threshold=0)

        assert results[0].id == doc_id
        assert results[0].similarity == pytest.approx(1.0)
        assert results[0].metadata == {"category": "test"}

    @pytest.mark.asyncio
    async def test_respects_limit_and_threshold(self, engine, store, static_provider):
        for text in ["apple pie", "apple tart", "banana bread", "cherry cake", "apple crumble"]:
            store.seed("document_embeddings", text, {}, await static_provider._embed(text))

        results = await engine.vector_search("apple", limit=2, similarity_threshold=0.3)

        assert len(results) <= 2
        assert all(r.similarity > 0.3 for r in results)
        assert [r.similarity for r in results] == sorted((r.similarity for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_clamps_arguments(self, engine, fake_conn):
        await engine.vector_search("hello", limit=500, similarity_threshold=3)
        _, params = fake_conn.executed[-1]
        assert params["limit"] == 50
        assert params["threshold"] == 1.0

        await engine.vector_search("hello", limit=-4, similarity_threshold=-1)
        _, params = fake_conn.executed[-1]
        assert params["limit"] == 1
        assert params["threshold"] == 0.0

    @pytest.mark.asyncio
    async def test_query_text_is_bound_not_interpolated(self, engine, fake_conn):
        await engine.vector_search("'; DROP TABLE x; --")
        sql, params = fake_conn.executed[-1]
        assert "DROP TABLE" not in sql
        assert params["query_vec"].startswith("[")

    @pytest.mark.asyncio
    async def test_uses_resolved_embedding_column(self, engine, store, fake_conn):
        store.add_table("articles", embedding_columns=("title_embedding", "content_embedding"))
        await engine.vector_search("hello", table="articles")
        sql, _ = fake_conn.executed[-1]
        assert '"content_embedding" <=>' in sql
        assert '"public"."articles"' in sql

    @pytest.mark.asyncio
    async def test_embeds_before_borrowing_connection(self, fake_connections):
        seen = []

        async def embed(text):
            seen.append(fake_connections.acquired)
            return [1.0, 0.0]

        provider = AsyncMock()
        provider.embed = embed
        engine = QueryEngine(fake_connections, SchemaInspector(), provider)

        await engine.vector_search("hello")
        assert seen == [0]

    @pytest.mark.asyncio
    async def test_disabled_provider_fails_without_touching_database(self, fake_connections):
        engine = QueryEngine(fake_connections, SchemaInspector(), DisabledEmbeddingProvider())
        with pytest.raises(ProviderError):
            await engine.vector_search("hello")
        assert fake_connections.acquired == 0

    @pytest.mark.asyncio
    async def test_unknown_table_is_query_error(self, engine, fake_connections):
        with pytest.raises(QueryError, match="does not exist"):
            await engine.vector_search("hello", table="missing")
        assert fake_connections.released == fake_connections.acquired == 1

    @pytest.mark.asyncio
    async def test_sql_failure_is_query_error_and_releases_connection(self, static_provider):
        def responder(sql, params):
            if "<=>" in sql:
                return ProgrammingError(sql, params, Exception('column "embedding" does not exist'))
            if "information_schema.tables" in sql:
                return FakeResult([{"exists": 1}])
            return FakeResult([])

        connections = FakeConnectionManager(FakeConnection(responder))
        engine = QueryEngine(connections, SchemaInspector(), static_provider)

        with pytest.raises(QueryError, match='column "embedding" does not exist'):
            await engine.vector_search("hello")
        assert connections.released == 1


class TestMetadataSearch:
    @pytest.mark.asyncio
    async def test_scenario_insert_then_filter(self, engine):
        doc_id = await engine.insert_document("The quick brown fox", {"category": "test"})
        assert isinstance(doc_id, int) and doc_id > 0

        results = await engine.metadata_search({"category": "test"})

        assert len(results) == 1
        assert results[0].id == doc_id
        assert results[0].content == "The quick brown fox"

    @pytest.mark.asyncio
    async def test_no_filters_returns_most_recent_first(self, engine, store):
        for i in range(5):
            store.seed("document_embeddings", f"doc {i}", {"n": i}, [1.0])

        results = await engine.metadata_search({}, limit=3)

        assert [r.content for r in results] == ["doc 4", "doc 3", "doc 2"]

    @pytest.mark.asyncio
    async def test_filter_is_case_insensitive_substring(self, engine, store):
        store.seed("document_embeddings", "a", {"author": "Xavier"}, [1.0])
        store.seed("document_embeddings", "b", {"author": "Max"}, [1.0])
        store.seed("document_embeddings", "c", {"author": "Bob"}, [1.0])
        store.seed("document_embeddings", "d", {"title": "x"}, [1.0])

        results = await engine.metadata_search({"author": "x"})

        assert sorted(r.content for r in results) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_keys_and_values_are_bound(self, engine, fake_conn):
        await engine.metadata_search({"auth'or": "x' OR 1=1 --", "year": "2024"}, limit=1000)
        sql, params = fake_conn.executed[-1]

        assert "auth'or" not in sql
        assert "OR 1=1" not in sql
        assert sql.count("ILIKE") == 2
        assert " AND " in sql
        assert params["key_0"] == "auth'or"
        assert params["value_0"] == "%x' OR 1=1 --%"
        assert params["limit"] == 100

    @pytest.mark.asyncio
    async def test_no_filters_has_no_where_clause(self, engine, fake_conn):
        await engine.metadata_search(None)
        sql, _ = fake_conn.executed[-1]
        assert "WHERE" not in sql


class TestInsertDocument:
    @pytest.mark.asyncio
    async def test_commits_and_returns_id(self, engine, fake_conn, store):
        doc_id = await engine.insert_document("hello world")

        assert fake_conn.commits == 1
        row = store.rows["document_embeddings"][0]
        assert row["id"] == doc_id
        assert row["metadata"] == "{}"

    @pytest.mark.asyncio
    async def test_disabled_provider_is_provider_error(self, fake_connections):
        engine = QueryEngine(fake_connections, SchemaInspector(), DisabledEmbeddingProvider())
        with pytest.raises(ProviderError):
            await engine.insert_document("hello")
        assert fake_connections.acquired == 0

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, fake_connections):
        provider = AsyncMock()
        provider.embed = AsyncMock(side_effect=EmbeddingError("Embedding generation failed: 500"))
        engine = QueryEngine(fake_connections, SchemaInspector(), provider)
        with pytest.raises(EmbeddingError):
            await engine.insert_document("hello")

    @pytest.mark.asyncio
    async def test_non_json_metadata_is_rejected(self, engine):
        with pytest.raises(QueryError, match="JSON-serializable"):
            await engine.insert_document("hello", {"when": object()})


class TestStatistics:
    @pytest.mark.asyncio
    async def test_counts_each_table_once(self, engine, store):
        store.add_table("articles", embedding_columns=("embedding", "title_embedding"))
        store.seed("articles", "a", {}, [1.0])
        store.seed("articles", "b", {}, [1.0])
        store.seed("document_embeddings", "c", {}, [1.0])

        stats = await engine.get_statistics()

        assert [(t.name, t.embedding_column, t.document_count) for t in stats.tables] == [
            ("articles", "embedding", 2),
            ("articles", "title_embedding", 2),
            ("document_embeddings", "embedding", 1),
        ]
        assert stats.total_documents == 3

    @pytest.mark.asyncio
    async def test_ignores_non_vector_user_defined_columns(self, engine, store, fake_conn):
        store.add_table("jobs", embedding_columns=())
        store.tables["jobs"].append(("embedding_status", "USER-DEFINED", "job_state"))
        store.seed("jobs", "job", {}, [1.0])

        stats = await engine.get_statistics()

        assert [t.name for t in stats.tables] == ["document_embeddings"]
        assert stats.total_documents == 0
        sql, _ = fake_conn.executed[0]
        assert "udt_name = 'vector'" in sql


class TestSchemas:
    @pytest.mark.asyncio
    async def test_includes_usage_hints(self, static_provider):
        inspector = SchemaInspector()
        inspector.describe_all_tables = AsyncMock(return_value=[])
        connections = FakeConnectionManager(FakeConnection(lambda sql, params: None))
        engine = QueryEngine(connections, inspector, static_provider)

        report = await engine.get_schemas()

        assert report.tables == []
        assert report.usage_hints
        assert connections.released == 1
