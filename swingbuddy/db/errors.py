"""Store error hierarchy for the state backends.

Durable-store and cache implementations wrap backend-specific errors
(asyncpg, redis, timeouts) in one of these types so callers only ever
handle ``StoreError`` subclasses.
"""


class StoreError(Exception):
    """Base exception for all store errors."""

    retryable: bool = False

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class StoreConnectionError(StoreError):
    """Raised when the durable store cannot be reached.

    Examples:
        - PostgreSQL server unavailable
        - Connection dropped mid-query
        - Pool exhausted
    """

    retryable = True


class StoreTimeoutError(StoreConnectionError):
    """Raised when a durable store call exceeds its deadline.

    No partial write is performed; the caller may retry the whole operation.
    """


class CacheUnavailableError(StoreError):
    """Raised by cache implementations when the cache tier fails.

    The state facade never lets this escape: a failing cache only costs
    latency.
    """

    retryable = True


class ValidationError(StoreError):
    """Raised on invalid data."""


class StateLimitExceededError(ValidationError):
    """Raised when a conversation state grows past its configured limits."""
