"""
Embedding backends.

Each backend turns a piece of text into a flat list of floats. The server
picks exactly one of them at startup (see ``selection.py``) and keeps it for
the lifetime of the process.
"""

import logging
from abc import ABC, abstractmethod

import httpx
import numpy as np
from huggingface_hub import AsyncInferenceClient

from pgvector_mcp.config import Settings
from pgvector_mcp.errors import EmbeddingError, EmbeddingsDisabledError

logger = logging.getLogger("pgvector.embeddings")

DISABLED_MESSAGE = (
    "No embedding provider configured. Please set up Azure OpenAI or Hugging Face credentials."
)


class EmbeddingProvider(ABC):
    """Common interface for embedding backends."""

    name: str = ""

    @property
    def enabled(self) -> bool:
        return True

    async def embed(self, text: str) -> list[float]:
        """Embed ``text``, wrapping any backend failure in ``EmbeddingError``."""
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        vector = await self._embed(text)
        logger.debug("Embedded %d chars with %s (dim=%d)", len(text), self.name, len(vector))
        return vector

    @abstractmethod
    async def _embed(self, text: str) -> list[float]:
        ...

    async def aclose(self) -> None:
        """Release network resources held by the backend."""


class DisabledEmbeddingProvider(EmbeddingProvider):
    """Stand-in used when no credentials are configured. Every call fails."""

    name = "none"

    @property
    def enabled(self) -> bool:
        return False

    async def embed(self, text: str) -> list[float]:
        raise EmbeddingsDisabledError(DISABLED_MESSAGE)

    async def _embed(self, text: str) -> list[float]:
        raise EmbeddingsDisabledError(DISABLED_MESSAGE)


class AzureOpenAIEmbeddingProvider(EmbeddingProvider):
    """Azure OpenAI embeddings over the REST deployment endpoint."""

    name = "azure"

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.api_key = settings.azure_openai_api_key
        self.model = settings.azure_openai_model
        endpoint = settings.azure_openai_endpoint.rstrip("/")
        self.url = (
            f"{endpoint}/openai/deployments/{settings.azure_openai_deployment}"
            f"/embeddings?api-version={settings.azure_openai_api_version}"
        )
        self.client = client or httpx.AsyncClient()

    async def _embed(self, text: str) -> list[float]:
        try:
            response = await self.client.post(
                self.url,
                json={"input": text, "model": self.model},
                headers={"Content-Type": "application/json", "api-key": self.api_key},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Embedding generation failed: Azure OpenAI returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding generation failed: {e}") from e

        try:
            vector = response.json()["data"][0]["embedding"]
            return [float(v) for v in vector]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Embedding generation failed: malformed Azure OpenAI response ({e!r})"
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Hugging Face Inference feature-extraction."""

    name = "huggingface"

    def __init__(self, settings: Settings, client: AsyncInferenceClient | None = None):
        self.model = settings.huggingface_model
        self.client = client or AsyncInferenceClient(token=settings.huggingface_api_key)

    async def _embed(self, text: str) -> list[float]:
        try:
            raw = await self.client.feature_extraction(text, model=self.model)
        except Exception as e:
            raise EmbeddingError(f"Embedding generation failed: {e}") from e
        return flatten_vector(raw)


def flatten_vector(raw) -> list[float]:
    """Normalize a feature-extraction payload into a flat float list.

    The inference API answers with a numpy array, but depending on the model
    and client version that may be ``(dim,)``, ``(1, dim)`` or a plain nested
    list.
    """
    try:
        array = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise EmbeddingError(f"Embedding generation failed: non-numeric response ({e})") from e
    if array.size == 0:
        raise EmbeddingError("Embedding generation failed: empty response")
    return array.ravel().tolist()
