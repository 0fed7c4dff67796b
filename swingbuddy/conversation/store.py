"""StateStore abstract interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from swingbuddy.conversation.models import ConversationState, StateStats


class StateStore(ABC):
    """Abstract interface for the durable state tier.

    The durable store owns the authoritative record for each user. It
    stores whatever it is given and returns whatever it has: expiry is
    judged by callers, never by the store itself.

    ``timeout`` bounds the whole call in seconds, waiting for a
    connection included. ``None`` means the implementation default.
    Implementations raise ``StoreConnectionError`` when the backend
    cannot be reached and ``StoreTimeoutError`` when the deadline passes.
    """

    @abstractmethod
    async def get(
        self, user_id: str, *, timeout: float | None = None
    ) -> ConversationState | None:
        """Get the stored state for a user, expired or not."""
        pass

    @abstractmethod
    async def save(
        self, state: ConversationState, *, timeout: float | None = None
    ) -> None:
        """Insert or replace the state for ``state.user_id``."""
        pass

    @abstractmethod
    async def delete(self, user_id: str, *, timeout: float | None = None) -> bool:
        """Delete a user's state. Returns False when nothing was stored."""
        pass

    @abstractmethod
    async def delete_expired(
        self, before: datetime, *, timeout: float | None = None
    ) -> int:
        """Delete states whose ``expires_at`` is earlier than ``before``."""
        pass

    @abstractmethod
    async def stats(
        self, now: datetime, *, timeout: float | None = None
    ) -> StateStats:
        """Count stored states relative to ``now``."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check whether the backend is reachable."""
        pass
