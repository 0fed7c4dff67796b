"""Conversation state storage.

Contains:
- ConversationState model
- StateStore interface and durable implementations
- StateCache interface and cache implementations
- StateStoreCacheLayer, the facade every caller goes through
"""

from swingbuddy.conversation.cache import StateCache
from swingbuddy.conversation.models import ConversationState, StateStats
from swingbuddy.conversation.store import StateStore
from swingbuddy.conversation.stores import StateStoreCacheLayer

__all__ = [
    "ConversationState",
    "StateCache",
    "StateStats",
    "StateStore",
    "StateStoreCacheLayer",
]
