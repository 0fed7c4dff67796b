"""Configuration model exports.

    from swingbuddy.config.models import EngineConfig, StorageConfig
"""

from swingbuddy.config.models.engine import EngineConfig, StateLimits, SweeperConfig
from swingbuddy.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from swingbuddy.config.models.storage import (
    PostgresConfig,
    RedisStateCacheConfig,
    StorageConfig,
)

__all__ = [
    # Engine
    "EngineConfig",
    "StateLimits",
    "SweeperConfig",
    # Observability
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    # Storage
    "PostgresConfig",
    "RedisStateCacheConfig",
    "StorageConfig",
]
