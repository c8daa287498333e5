"""Startup-time choice of embedding backend."""

import enum
import logging

from pgvector_mcp.config import Settings
from pgvector_mcp.embedding_provider.providers import (
    AzureOpenAIEmbeddingProvider,
    DisabledEmbeddingProvider,
    EmbeddingProvider,
    HuggingFaceEmbeddingProvider,
)
from pgvector_mcp.errors import ConfigurationError

logger = logging.getLogger("pgvector.embeddings")


class ProviderName(str, enum.Enum):
    AZURE = "azure"
    HUGGINGFACE = "huggingface"
    NONE = "none"


AUTO = "auto"


def resolve_provider_name(settings: Settings) -> ProviderName:
    """Pick the backend named by EMBEDDING_PROVIDER, or infer it from credentials.

    In ``auto`` mode Azure wins when both its key and endpoint are set, then
    Hugging Face when its key is set, otherwise embeddings are disabled.
    """
    configured = settings.embedding_provider
    if configured != AUTO:
        try:
            return ProviderName(configured)
        except ValueError:
            raise ConfigurationError(
                f"Unsupported EMBEDDING_PROVIDER '{configured}' "
                "(expected auto, azure, huggingface or none)"
            ) from None

    if settings.azure_openai_api_key and settings.azure_openai_endpoint:
        return ProviderName.AZURE
    if settings.huggingface_api_key:
        return ProviderName.HUGGINGFACE
    return ProviderName.NONE


def build_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Instantiate the selected backend, failing fast on missing credentials."""
    name = resolve_provider_name(settings)

    if name is ProviderName.AZURE:
        if not (settings.azure_openai_api_key and settings.azure_openai_endpoint):
            raise ConfigurationError(
                "AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT are required "
                "when EMBEDDING_PROVIDER='azure'"
            )
        provider: EmbeddingProvider = AzureOpenAIEmbeddingProvider(settings)
    elif name is ProviderName.HUGGINGFACE:
        if not settings.huggingface_api_key:
            raise ConfigurationError(
                "HUGGINGFACE_API_KEY is required when EMBEDDING_PROVIDER='huggingface'"
            )
        provider = HuggingFaceEmbeddingProvider(settings)
    else:
        logger.warning(
            "No embedding provider configured. Vector search and document insertion are disabled. "
            "Set AZURE_OPENAI_API_KEY + AZURE_OPENAI_ENDPOINT or HUGGINGFACE_API_KEY to enable them."
        )
        provider = DisabledEmbeddingProvider()

    logger.info("Embedding provider: %s", provider.name)
    return provider
