"""Bootstrap module wiring the engine together from configuration.

Opens the process-wide Postgres pool and Redis client once, builds the
registry, facade and manager, and optionally starts the sweeper.

Example usage:

    from swingbuddy.bootstrap import create_engine

    engine = await create_engine(terminal_actions={
        ScenarioName.ONBOARDING: save_profile,
    })
    try:
        outcome = await engine.manager.advance("42", "/start")
    finally:
        await engine.close()
"""

from collections.abc import Mapping
from dataclasses import dataclass

import redis.asyncio as redis

from swingbuddy.config import Settings, get_settings
from swingbuddy.conversation.cache import StateCache
from swingbuddy.conversation.caches import InMemoryStateCache, RedisStateCache
from swingbuddy.conversation.store import StateStore
from swingbuddy.conversation.stores import (
    InMemoryStateStore,
    PostgresStateStore,
    StateStoreCacheLayer,
)
from swingbuddy.db.pool import PostgresPool
from swingbuddy.jobs.sweeper import ExpiredStateSweeper
from swingbuddy.observability.logging import get_logger, setup_logging
from swingbuddy.observability.metrics import setup_metrics
from swingbuddy.runtime.mutex import UserMutex
from swingbuddy.scenarios.manager import ScenarioManager
from swingbuddy.scenarios.models import ScenarioName, TerminalAction
from swingbuddy.scenarios.registry import ScenarioRegistry, build_default_registry

logger = get_logger(__name__)


@dataclass
class Engine:
    """Everything ``create_engine`` opened, plus the manager to drive it."""

    settings: Settings
    registry: ScenarioRegistry
    store: StateStoreCacheLayer
    manager: ScenarioManager
    sweeper: ExpiredStateSweeper | None = None
    pool: PostgresPool | None = None
    redis_client: redis.Redis | None = None

    async def close(self) -> None:
        """Stop background work and release connections."""
        if self.sweeper is not None:
            await self.sweeper.stop()
        if self.redis_client is not None:
            await self.redis_client.aclose()
        if self.pool is not None:
            await self.pool.close()
        logger.info("engine_closed")


async def _create_durable_store(settings: Settings) -> tuple[StateStore, PostgresPool | None]:
    config = settings.storage.postgres
    if config.backend == "inmemory":
        return InMemoryStateStore(), None

    pool = PostgresPool.from_config(config)
    await pool.connect()
    return PostgresStateStore(pool, command_timeout=config.command_timeout), pool


def _create_cache(settings: Settings) -> tuple[StateCache | None, redis.Redis | None]:
    config = settings.storage.cache
    if not config.enabled:
        return None, None
    if config.backend == "inmemory":
        return InMemoryStateCache(), None

    client = redis.from_url(
        config.connection_url,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_timeout,
    )
    return RedisStateCache(client, config), client


async def create_engine(
    settings: Settings | None = None,
    *,
    terminal_actions: Mapping[ScenarioName, TerminalAction] | None = None,
    start_sweeper: bool | None = None,
) -> Engine:
    """Build a ready-to-use engine.

    Args:
        settings: Configuration (loaded from TOML/env if not provided)
        terminal_actions: Side effect per scenario, run on completion
        start_sweeper: Override ``settings.sweeper.enabled``

    Raises:
        StoreConnectionError: If the durable store cannot be reached
        ScenarioDefinitionError: If the scenario set is inconsistent
    """
    settings = settings or get_settings()

    observability = settings.observability
    setup_logging(
        level=observability.logging.level,
        format=observability.logging.format,
        redact_pii=observability.logging.redact_pii,
    )
    if observability.metrics.enabled:
        setup_metrics(observability.metrics.port)

    registry = build_default_registry(
        terminal_actions=terminal_actions,
        ttl_overrides=settings.engine.ttl_overrides,
    )

    durable, pool = await _create_durable_store(settings)
    cache, redis_client = _create_cache(settings)
    store = StateStoreCacheLayer(durable, cache, settings.storage.cache)
    if settings.storage.cache.flush_on_startup:
        await store.flush_cache()

    manager = ScenarioManager(
        registry,
        store,
        mutex=UserMutex(settings.engine.lock_blocking_timeout),
        config=settings.engine,
    )

    engine = Engine(
        settings=settings,
        registry=registry,
        store=store,
        manager=manager,
        pool=pool,
        redis_client=redis_client,
    )

    run_sweeper = settings.sweeper.enabled if start_sweeper is None else start_sweeper
    if run_sweeper:
        engine.sweeper = ExpiredStateSweeper(
            store,
            interval_seconds=settings.sweeper.interval_seconds,
            grace_seconds=settings.sweeper.grace_seconds,
        )
        await engine.sweeper.start()

    logger.info(
        "engine_created",
        durable_backend=settings.storage.postgres.backend,
        cache_enabled=store.cache_enabled,
        scenarios=registry.names,
    )
    return engine
