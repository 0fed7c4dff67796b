"""StateCache implementations."""

from swingbuddy.conversation.caches.inmemory import InMemoryStateCache
from swingbuddy.conversation.caches.redis import RedisStateCache

__all__ = [
    "InMemoryStateCache",
    "RedisStateCache",
]
