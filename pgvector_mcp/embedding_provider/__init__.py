from pgvector_mcp.embedding_provider.providers import (
    AzureOpenAIEmbeddingProvider,
    DisabledEmbeddingProvider,
    EmbeddingProvider,
    HuggingFaceEmbeddingProvider,
    flatten_vector,
)
from pgvector_mcp.embedding_provider.selection import (
    ProviderName,
    build_embedding_provider,
    resolve_provider_name,
)

__all__ = [
    "AzureOpenAIEmbeddingProvider",
    "DisabledEmbeddingProvider",
    "EmbeddingProvider",
    "HuggingFaceEmbeddingProvider",
    "ProviderName",
    "build_embedding_provider",
    "flatten_vector",
    "resolve_provider_name",
]
