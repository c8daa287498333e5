"""
Connection lifecycle: lazily creates the async engine, health-checks it once,
and hands out pooled connections.

The server keeps running when the database is missing or unreachable; tools
that need it fail fast with ``DatabaseConnectionError`` while ``check_status``
keeps reporting why.
"""

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager

from sqlalchemy import text as sa_text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from pgvector_mcp.config import Settings
from pgvector_mcp.errors import DatabaseConnectionError

logger = logging.getLogger("pgvector.database")


class ConnectionStatus(str, enum.Enum):
    NOT_ATTEMPTED = "not_attempted"
    CONNECTED = "connected"
    FAILED = "failed"
    NO_URL = "no_url"
    SKIPPED_HEALTH_CHECK = "skipped_health_check"


class ConnectionManager:
    """Owns the engine and the process-wide connection status."""

    def __init__(
        self,
        settings: Settings,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
    ):
        self.settings = settings
        self.engine_factory = engine_factory
        self.engine: AsyncEngine | None = None
        self.status = ConnectionStatus.NOT_ATTEMPTED
        self.last_error: str | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def describe_target(self) -> str | None:
        """host:port/database of DATABASE_URL, without credentials."""
        if not self.settings.database_url:
            return None
        try:
            url = make_url(self.settings.async_database_url)
        except ArgumentError:
            return "invalid DATABASE_URL"
        host = url.host or "localhost"
        if url.port:
            host = f"{host}:{url.port}"
        return f"{host}/{url.database or ''}"

    async def initialize(self, force: bool = False) -> ConnectionStatus:
        """Attempt to connect once. Concurrent callers share one attempt.

        Without ``force`` an already-resolved status is returned as is.
        """
        async with self._lock:
            # a caller queued behind the lock may find the work already done
            if self.status is ConnectionStatus.CONNECTED:
                return self.status
            if self.status is not ConnectionStatus.NOT_ATTEMPTED and not force:
                return self.status

            if not self.settings.database_url:
                self.status = ConnectionStatus.NO_URL
                self.last_error = "DATABASE_URL is not set"
                logger.warning("DATABASE_URL is not set; database tools are unavailable")
                return self.status

            if self.settings.skip_health_check:
                self.status = ConnectionStatus.SKIPPED_HEALTH_CHECK
                self.last_error = "health check skipped (diagnostic mode)"
                logger.info("Skipping database health check")
                return self.status

            try:
                if self.engine is None:
                    self.engine = self.engine_factory(
                        self.settings.async_database_url, echo=False, pool_pre_ping=True,
                    )
                async with self.engine.connect() as conn:
                    await conn.execute(sa_text("SELECT 1"))
            except (SQLAlchemyError, OSError, ValueError) as e:
                self.status = ConnectionStatus.FAILED
                self.last_error = str(e)
                logger.error("Database connection failed (%s): %s", self.describe_target(), e)
                return self.status

            self.status = ConnectionStatus.CONNECTED
            self.last_error = None
            logger.info("Database connected (%s)", self.describe_target())
            return self.status

    async def ensure_connected(self) -> AsyncEngine:
        """Return the engine, making one connection attempt if none succeeded yet."""
        if self.status in (ConnectionStatus.NOT_ATTEMPTED, ConnectionStatus.FAILED):
            await self.initialize(force=self.status is ConnectionStatus.FAILED)
        if not self.is_connected or self.engine is None:
            detail = f": {self.last_error}" if self.last_error else ""
            raise DatabaseConnectionError(
                f"Database connection not available (status: {self.status.value}){detail}"
            )
        return self.engine

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one pooled connection; it is returned on every exit path."""
        engine = await self.ensure_connected()
        async with AsyncExitStack() as stack:
            try:
                conn = await stack.enter_async_context(engine.connect())
            except (SQLAlchemyError, OSError) as e:
                raise self._connection_lost(e) from e
            yield conn

    def _connection_lost(self, error: Exception) -> DatabaseConnectionError:
        """Mark the database as failed so the next operation reconnects."""
        orig = getattr(error, "orig", None)
        self.status = ConnectionStatus.FAILED
        self.last_error = str(orig if orig is not None else error)
        logger.error("Database connection lost (%s): %s", self.describe_target(), self.last_error)
        return DatabaseConnectionError(f"Database connection lost: {self.last_error}")

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
