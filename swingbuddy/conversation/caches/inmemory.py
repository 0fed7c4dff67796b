"""In-memory implementation of StateCache."""

import time

from swingbuddy.conversation.cache import StateCache
from swingbuddy.conversation.models import ConversationState


class InMemoryStateCache(StateCache):
    """Process-local cache with per-entry TTL, for development and tests.

    Entries are stored serialized so that callers never share an object
    with the cache, the same as with Redis.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, user_id: str) -> ConversationState | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        payload, deadline = entry
        if time.monotonic() >= deadline:
            del self._entries[user_id]
            return None
        return ConversationState.model_validate_json(payload)

    async def set(self, state: ConversationState, ttl_seconds: int) -> None:
        self._entries[state.user_id] = (
            state.model_dump_json(),
            time.monotonic() + ttl_seconds,
        )

    async def delete(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    async def flush(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed

    async def health_check(self) -> bool:
        return True
