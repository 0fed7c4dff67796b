"""Conversation state models."""

from swingbuddy.conversation.models.state import (
    ConversationState,
    DataValue,
    StateStats,
    utc_now,
)

__all__ = [
    "ConversationState",
    "DataValue",
    "StateStats",
    "utc_now",
]
