"""Error hierarchy shared by every layer of the server.

The dispatcher catches ``PgVectorMCPError`` and turns it into an MCP error;
anything else reaching it is treated as an internal failure.
"""


class PgVectorMCPError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(PgVectorMCPError):
    """Missing or invalid configuration. Fatal at startup."""


class DatabaseConnectionError(PgVectorMCPError):
    """The database is not configured or not reachable."""


class ProviderError(PgVectorMCPError):
    """An embedding provider could not produce a vector."""


class EmbeddingsDisabledError(ProviderError):
    """No embedding provider is configured."""


class EmbeddingError(ProviderError):
    """The embedding backend call failed or returned an unusable body."""


class QueryError(PgVectorMCPError):
    """Bad table/column reference or a failed SQL statement."""
