"""Database utilities for SwingBuddy.

This module contains:
- Connection pool management
- Store error hierarchy
- Alembic migrations for the state table
"""

from swingbuddy.db.errors import (
    CacheUnavailableError,
    StateLimitExceededError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
    ValidationError,
)

__all__ = [
    "StoreError",
    "StoreConnectionError",
    "StoreTimeoutError",
    "CacheUnavailableError",
    "ValidationError",
    "StateLimitExceededError",
]
