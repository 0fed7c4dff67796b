"""State store facade over the durable store and the cache.

Reads are cache-aside, writes are write-through. The durable store is
always authoritative: cache trouble is logged, counted and otherwise
ignored, so a dead cache only costs latency.
"""

from collections.abc import Callable
from datetime import datetime

from swingbuddy.config.models.storage import RedisStateCacheConfig
from swingbuddy.conversation.cache import StateCache
from swingbuddy.conversation.models import ConversationState, StateStats, utc_now
from swingbuddy.conversation.store import StateStore
from swingbuddy.db.errors import CacheUnavailableError
from swingbuddy.observability.logging import get_logger
from swingbuddy.observability.metrics import (
    STATE_CACHE_ERRORS,
    STATE_CACHE_HITS,
    STATE_CACHE_MISSES,
)

logger = get_logger(__name__)


class StateStoreCacheLayer:
    """Single entry point for reading and writing conversation states.

    - ``get``: cache first; an expired, missing or failed cache read falls
      through to the durable store. An unexpired durable hit repopulates
      the cache. Expired records are reported as absent and left in place.
    - ``put``: durable save, then cache set. If the cache set fails the
      cache entry is deleted so no stale copy outlives the write.
    - ``clear``: durable delete, then cache delete.

    Durable errors (``StoreConnectionError``, ``StoreTimeoutError``)
    propagate; ``CacheUnavailableError`` never does.
    """

    def __init__(
        self,
        backend: StateStore,
        cache: StateCache | None = None,
        config: RedisStateCacheConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the facade.

        Args:
            backend: Durable state store
            cache: Ephemeral cache; None runs durable-only
            config: Cache configuration (uses defaults if not provided)
            clock: Source of the current UTC time
        """
        self._backend = backend
        self._config = config or RedisStateCacheConfig()
        self._cache = cache if self._config.enabled else None
        self._clock = clock

    @property
    def cache_enabled(self) -> bool:
        return self._cache is not None

    # =========================================================================
    # CACHE OPERATIONS
    # =========================================================================

    async def _get_cached(self, user_id: str) -> ConversationState | None:
        if self._cache is None:
            return None

        try:
            return await self._cache.get(user_id)
        except CacheUnavailableError as e:
            STATE_CACHE_ERRORS.labels(operation="get").inc()
            logger.warning("state_cache_get_error", user_id=user_id, error=str(e))
            return None

    async def _set_cached(self, state: ConversationState, ttl_seconds: int) -> bool:
        assert self._cache is not None
        try:
            await self._cache.set(state, ttl_seconds)
        except CacheUnavailableError as e:
            STATE_CACHE_ERRORS.labels(operation="set").inc()
            logger.warning("state_cache_set_error", user_id=state.user_id, error=str(e))
            return False

        logger.debug("state_cache_set", user_id=state.user_id, ttl=ttl_seconds)
        return True

    async def _invalidate(self, user_id: str) -> None:
        if self._cache is None:
            return

        try:
            await self._cache.delete(user_id)
        except CacheUnavailableError as e:
            STATE_CACHE_ERRORS.labels(operation="delete").inc()
            logger.warning("state_cache_delete_error", user_id=user_id, error=str(e))

    async def _populate(self, state: ConversationState, now: datetime) -> None:
        """Mirror a durable record into the cache, bounded by its expiry."""
        if self._cache is None:
            return

        ttl = state.cache_ttl_seconds(now, self._config.ttl_ceiling_seconds)
        if ttl <= 0:
            await self._invalidate(state.user_id)
            return

        if not await self._set_cached(state, ttl):
            await self._invalidate(state.user_id)

    # =========================================================================
    # FACADE OPERATIONS
    # =========================================================================

    async def get(
        self, user_id: str, *, timeout: float | None = None
    ) -> ConversationState | None:
        """Get the live state for a user, or None if absent or expired."""
        now = self._clock()

        cached = await self._get_cached(user_id)
        if cached is not None and not cached.is_expired(now):
            STATE_CACHE_HITS.inc()
            logger.debug("state_cache_hit", user_id=user_id)
            return cached

        if self._cache is not None:
            STATE_CACHE_MISSES.inc()
            logger.debug(
                "state_cache_miss",
                user_id=user_id,
                expired_copy=cached is not None,
            )

        state = await self._backend.get(user_id, timeout=timeout)
        if state is None:
            return None
        if state.is_expired(now):
            logger.debug("state_expired", user_id=user_id, expires_at=state.expires_at)
            return None

        await self._populate(state, now)
        return state

    async def put(
        self, state: ConversationState, *, timeout: float | None = None
    ) -> None:
        """Persist a state durably, then mirror it into the cache."""
        await self._backend.save(state, timeout=timeout)
        await self._populate(state, self._clock())

    async def clear(self, user_id: str, *, timeout: float | None = None) -> bool:
        """Remove a user's state from both tiers."""
        deleted = await self._backend.delete(user_id, timeout=timeout)
        await self._invalidate(user_id)
        return deleted

    async def purge_expired(
        self, before: datetime, *, timeout: float | None = None
    ) -> int:
        """Delete durable records that expired before ``before``.

        Cached copies are left to their own TTL, which never outlives the
        record's ``expires_at``.
        """
        return await self._backend.delete_expired(before, timeout=timeout)

    async def flush_cache(self) -> int:
        """Drop every cached state, leaving the durable store alone.

        Returns the number of entries removed; 0 when the cache is disabled
        or unreachable.
        """
        if self._cache is None:
            return 0

        try:
            removed = await self._cache.flush()
        except CacheUnavailableError as e:
            STATE_CACHE_ERRORS.labels(operation="flush").inc()
            logger.warning("state_cache_flush_error", error=str(e))
            return 0

        logger.info("state_cache_flushed", removed=removed)
        return removed

    async def stats(self, *, timeout: float | None = None) -> StateStats:
        return await self._backend.stats(self._clock(), timeout=timeout)

    async def health_check(self) -> dict[str, bool]:
        """Report reachability per tier."""
        health = {"durable": await self._backend.health_check()}
        if self._cache is not None:
            health["cache"] = await self._cache.health_check()
        return health
