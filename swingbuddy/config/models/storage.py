"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

DurableBackendType = Literal["postgres", "inmemory"]
CacheBackendType = Literal["redis", "inmemory"]


class PostgresConfig(BaseModel):
    """Durable state store configuration."""

    backend: DurableBackendType = Field(
        default="postgres",
        description="Durable backend type",
    )
    connection_url: str | None = Field(
        default=None,
        description=(
            "Connection URL; when unset asyncpg reads the standard libpq "
            "PGHOST/PGPORT/PGUSER/PGPASSWORD/PGDATABASE variables"
        ),
    )
    min_pool_size: int = Field(
        default=1,
        gt=0,
        description="Minimum connections to keep open",
    )
    max_pool_size: int = Field(
        default=10,
        gt=0,
        description="Maximum connections in pool",
    )
    max_inactive_connection_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Close connections idle longer than this (seconds)",
    )
    command_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Deadline for a single state read/write, pool wait included (seconds)",
    )


class RedisStateCacheConfig(BaseModel):
    """Ephemeral state cache configuration.

    The cache mirrors active conversation states. Entries never outlive the
    state's own ``expires_at``; ``ttl_ceiling_seconds`` caps them further.
    """

    backend: CacheBackendType = Field(
        default="redis",
        description="Cache backend type",
    )
    enabled: bool = Field(
        default=True,
        description="Enable/disable the cache tier (durable-only when disabled)",
    )
    connection_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    key_prefix: str = Field(
        default="swingbuddy",
        description="Redis key prefix for state keys",
    )
    ttl_ceiling_seconds: int = Field(
        default=1800,  # 30 minutes
        gt=0,
        description="Upper bound on cache entry TTL (seconds)",
    )
    socket_timeout: float = Field(
        default=1.0,
        gt=0,
        description="Redis socket timeout (seconds); a slow cache degrades to a miss",
    )
    flush_on_startup: bool = Field(
        default=False,
        description="Drop every cached state when the engine starts (durable records are kept)",
    )


class StorageConfig(BaseModel):
    """Configuration for both state tiers."""

    postgres: PostgresConfig = Field(
        default_factory=PostgresConfig,
        description="Durable state store",
    )
    cache: RedisStateCacheConfig = Field(
        default_factory=RedisStateCacheConfig,
        description="Ephemeral state cache",
    )
