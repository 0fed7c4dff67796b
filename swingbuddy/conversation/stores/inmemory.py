"""In-memory implementation of StateStore."""

from collections import Counter
from datetime import datetime

from swingbuddy.conversation.models import ConversationState, StateStats
from swingbuddy.conversation.store import StateStore


class InMemoryStateStore(StateStore):
    """In-memory implementation of StateStore for testing and development.

    Uses simple dict storage keyed by user id.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._states: dict[str, ConversationState] = {}

    async def get(
        self, user_id: str, *, timeout: float | None = None  # noqa: ARG002
    ) -> ConversationState | None:
        """Get the stored state for a user."""
        return self._states.get(user_id)

    async def save(
        self, state: ConversationState, *, timeout: float | None = None  # noqa: ARG002
    ) -> None:
        """Insert or replace a user's state."""
        self._states[state.user_id] = state

    async def delete(
        self, user_id: str, *, timeout: float | None = None  # noqa: ARG002
    ) -> bool:
        """Delete a user's state."""
        return self._states.pop(user_id, None) is not None

    async def delete_expired(
        self, before: datetime, *, timeout: float | None = None  # noqa: ARG002
    ) -> int:
        """Delete states that expired before the given instant."""
        expired = [
            user_id
            for user_id, state in self._states.items()
            if state.expires_at is not None and state.expires_at < before
        ]
        for user_id in expired:
            del self._states[user_id]
        return len(expired)

    async def stats(
        self, now: datetime, *, timeout: float | None = None  # noqa: ARG002
    ) -> StateStats:
        """Count stored states."""
        expired = sum(1 for state in self._states.values() if state.is_expired(now))
        by_scenario = Counter(
            state.scenario_name
            for state in self._states.values()
            if state.scenario_name is not None and not state.is_expired(now)
        )
        return StateStats(
            total=len(self._states),
            active=len(self._states) - expired,
            expired=expired,
            by_scenario=dict(by_scenario),
        )

    async def health_check(self) -> bool:
        return True
