from dataclasses import dataclass

from pgvector_mcp.config import Settings
from pgvector_mcp.database import ConnectionManager
from pgvector_mcp.embedding_provider import EmbeddingProvider, build_embedding_provider
from pgvector_mcp.query_engine import QueryEngine
from pgvector_mcp.schema_inspector import SchemaInspector


@dataclass
class ServerContext:
    """Everything a tool call needs, built once by the entry point."""

    settings: Settings
    provider: EmbeddingProvider
    connections: ConnectionManager
    engine: QueryEngine

    async def aclose(self) -> None:
        await self.provider.aclose()
        await self.connections.dispose()


def build_context(
    settings: Settings,
    provider: EmbeddingProvider | None = None,
    connections: ConnectionManager | None = None,
) -> ServerContext:
    """Wire settings into the provider, connection manager and query engine.

    Raises ConfigurationError when the selected provider lacks credentials.
    """
    provider = provider or build_embedding_provider(settings)
    connections = connections or ConnectionManager(settings)
    engine = QueryEngine(
        connections=connections,
        inspector=SchemaInspector(schema=settings.db_schema),
        provider=provider,
        default_table=settings.default_table,
    )
    return ServerContext(settings=settings, provider=provider, connections=connections, engine=engine)
