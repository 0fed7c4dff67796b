"""StateCache abstract interface."""

from abc import ABC, abstractmethod

from swingbuddy.conversation.models import ConversationState


class StateCache(ABC):
    """Abstract interface for the ephemeral state tier.

    The cache holds disposable copies of durable records. Any failure is
    reported as ``CacheUnavailableError``; callers decide whether it
    matters (the state facade never lets it escape).
    """

    @abstractmethod
    async def get(self, user_id: str) -> ConversationState | None:
        """Get the cached state, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, state: ConversationState, ttl_seconds: int) -> None:
        """Cache a state for ``ttl_seconds`` (must be positive)."""
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Drop a cached state if present."""
        pass

    @abstractmethod
    async def flush(self) -> int:
        """Drop every cached state. Returns the number of entries removed."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check whether the cache is reachable."""
        pass
