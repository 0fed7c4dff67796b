"""PostgreSQL connection pool.

The engine opens one pool per process in ``bootstrap.create_engine`` and
every durable store borrows connections from it. Driver and socket
failures leave this module as ``StoreConnectionError``; deadlines are the
caller's business, so ``TimeoutError`` passes through untouched.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from swingbuddy.config.models.storage import PostgresConfig
from swingbuddy.db.errors import StoreConnectionError
from swingbuddy.observability.logging import get_logger

logger = get_logger(__name__)

_DRIVER_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresPool:
    """Lazily connected asyncpg pool.

    Usage:
        pool = PostgresPool.from_config(settings.storage.postgres)
        await pool.connect()
        async with pool.acquire() as conn:
            await conn.fetchrow("SELECT ...")
        await pool.close()
    """

    def __init__(
        self,
        dsn: str | None,
        min_size: int = 1,
        max_size: int = 10,
        max_inactive_connection_lifetime: float = 300.0,
        command_timeout: float = 5.0,
    ) -> None:
        self._dsn = dsn
        self._pool_kwargs = {
            "min_size": min_size,
            "max_size": max_size,
            "max_inactive_connection_lifetime": max_inactive_connection_lifetime,
            "command_timeout": command_timeout,
        }
        self._health_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    @classmethod
    def from_config(cls, config: PostgresConfig) -> "PostgresPool":
        return cls(
            dsn=config.connection_url,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
            command_timeout=config.command_timeout,
        )

    async def connect(self) -> None:
        """Open the pool; a no-op when already open."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(dsn=self._dsn, **self._pool_kwargs)
        except _DRIVER_ERRORS as e:
            logger.error("postgres_pool_connection_failed", error=str(e))
            raise StoreConnectionError(
                f"Failed to connect to PostgreSQL: {e}", cause=e
            ) from e

        logger.info(
            "postgres_pool_connected",
            min_size=self._pool_kwargs["min_size"],
            max_size=self._pool_kwargs["max_size"],
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, connecting first if needed.

        Raises:
            StoreConnectionError: On driver or socket errors inside the block
        """
        await self.connect()
        assert self._pool is not None

        try:
            async with self._pool.acquire() as connection:
                yield connection
        except TimeoutError:
            raise
        except _DRIVER_ERRORS as e:
            logger.error("postgres_connection_error", error=str(e))
            raise StoreConnectionError(f"PostgreSQL error: {e}", cause=e) from e

    async def health_check(self) -> bool:
        """True if the pool is open and answers ``SELECT 1`` in time."""
        if self._pool is None:
            return False

        try:
            async with asyncio.timeout(self._health_timeout):
                async with self._pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")
        except (TimeoutError, *_DRIVER_ERRORS) as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False
        return True
