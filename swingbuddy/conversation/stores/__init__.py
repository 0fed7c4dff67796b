"""StateStore implementations and the two-tier facade."""

from swingbuddy.conversation.stores.cached import StateStoreCacheLayer
from swingbuddy.conversation.stores.inmemory import InMemoryStateStore
from swingbuddy.conversation.stores.postgres import PostgresStateStore

__all__ = [
    "InMemoryStateStore",
    "PostgresStateStore",
    "StateStoreCacheLayer",
]
