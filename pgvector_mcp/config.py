from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ASYNC_DRIVER_SCHEME = "postgresql+asyncpg://"
_PLAIN_SCHEMES = ("postgresql://", "postgres://")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    log_level: str = "INFO"
    mcp_server_name: str = "pgvector"
    mcp_server_version: str = "1.0.0"
    content_preview_chars: int = 200

    # Database
    database_url: str = ""
    db_schema: str = "public"
    default_table: str = "document_embeddings"
    skip_health_check: bool = False

    # Embeddings: auto, azure, huggingface, none
    embedding_provider: str = "auto"

    # Azure OpenAI
    azure_openai_api_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_deployment: str = "text-embedding-ada-002"
    azure_openai_model: str = "text-embedding-ada-002"
    azure_openai_api_version: str = "2023-05-15"

    # Hugging Face
    huggingface_api_key: str = ""
    huggingface_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    @field_validator("embedding_provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def async_database_url(self) -> str:
        """DATABASE_URL rewritten for the asyncpg driver.

        Plain ``postgres://`` / ``postgresql://`` URLs (the form most hosts
        hand out) get the driver suffix; URLs that already name a driver are
        returned unchanged.
        """
        url = self.database_url.strip()
        for scheme in _PLAIN_SCHEMES:
            if url.startswith(scheme):
                return ASYNC_DRIVER_SCHEME + url[len(scheme):]
        return url
