"""Redis implementation of StateCache.

Entries are JSON-serialized ConversationState values stored with SETEX so
Redis evicts them on its own; the TTL is chosen by the caller and never
reaches past the state's ``expires_at``.
"""

import pydantic
import redis.asyncio as redis

from swingbuddy.config.models.storage import RedisStateCacheConfig
from swingbuddy.conversation.cache import StateCache
from swingbuddy.conversation.models import ConversationState
from swingbuddy.db.errors import CacheUnavailableError
from swingbuddy.observability.logging import get_logger

logger = get_logger(__name__)

_BACKEND_ERRORS = (redis.RedisError, OSError)


class RedisStateCache(StateCache):
    """Redis-backed state cache."""

    def __init__(
        self,
        client: redis.Redis,
        config: RedisStateCacheConfig | None = None,
    ) -> None:
        """Initialize Redis state cache.

        Args:
            client: Async Redis client
            config: Cache configuration (key prefix)
        """
        self._redis = client
        self._config = config or RedisStateCacheConfig()

    def _key(self, user_id: str) -> str:
        return f"{self._config.key_prefix}:state:{user_id}"

    async def get(self, user_id: str) -> ConversationState | None:
        """Get a cached state."""
        key = self._key(user_id)
        try:
            payload = await self._redis.get(key)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis get failed: {e}", cause=e) from e

        if payload is None:
            return None

        try:
            return ConversationState.model_validate_json(payload)
        except pydantic.ValidationError as e:
            logger.warning("redis_state_payload_invalid", user_id=user_id, error=str(e))
            try:
                await self._redis.delete(key)
            except _BACKEND_ERRORS as delete_error:
                logger.debug("redis_state_payload_delete_failed", error=str(delete_error))
            return None

    async def set(self, state: ConversationState, ttl_seconds: int) -> None:
        """Cache a state with a TTL."""
        try:
            await self._redis.setex(
                self._key(state.user_id),
                ttl_seconds,
                state.model_dump_json(),
            )
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis set failed: {e}", cause=e) from e

    async def delete(self, user_id: str) -> None:
        """Drop a cached state."""
        try:
            await self._redis.delete(self._key(user_id))
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis delete failed: {e}", cause=e) from e

    async def flush(self) -> int:
        """Delete all state keys under this prefix."""
        pattern = f"{self._config.key_prefix}:state:*"
        removed = 0
        batch: list[str | bytes] = []
        try:
            async for key in self._redis.scan_iter(match=pattern, count=500):
                batch.append(key)
                if len(batch) >= 500:
                    removed += await self._redis.delete(*batch)
                    batch = []
            if batch:
                removed += await self._redis.delete(*batch)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis flush failed: {e}", cause=e) from e

        logger.info("redis_state_cache_flushed", removed=removed)
        return removed

    async def health_check(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except _BACKEND_ERRORS as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False
