"""Per-user mutex.

In-process keyed lock table ensuring a single writer per user. Inputs for
different users never wait on each other.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class UserMutex:
    """Keyed ``asyncio.Lock`` table for user-level mutual exclusion.

    Entries are reference counted: a lock exists only while some task
    holds or waits for it, so the table does not grow with the number of
    users ever seen.
    """

    def __init__(self, blocking_timeout: float = 5.0) -> None:
        """Initialize user mutex.

        Args:
            blocking_timeout: How long to wait when trying to acquire (seconds)
        """
        self._blocking_timeout = blocking_timeout
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def acquire(
        self,
        user_id: str,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        """Acquire the exclusive lock for a user.

        Args:
            user_id: User whose inputs are being serialized
            blocking_timeout: Override default blocking timeout

        Yields:
            True if the lock was acquired, False if waiting timed out

        Usage:
            async with user_mutex.acquire("42") as acquired:
                if acquired:
                    # Safe to read and write this user's state
                else:
                    # Another input for this user is still running
        """
        timeout = self._blocking_timeout if blocking_timeout is None else blocking_timeout

        entry = self._entries.get(user_id)
        if entry is None:
            entry = self._entries[user_id] = _LockEntry()
        entry.holders += 1

        acquired = False
        try:
            try:
                async with asyncio.timeout(timeout):
                    await entry.lock.acquire()
                acquired = True
            except TimeoutError:
                acquired = False

            yield acquired
        finally:
            if acquired:
                entry.lock.release()
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[user_id]

    def is_locked(self, user_id: str) -> bool:
        """Check if a user's lock is currently held."""
        entry = self._entries.get(user_id)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)
