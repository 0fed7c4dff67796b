"""Observability: structured logging and Prometheus metrics."""

from swingbuddy.observability.logging import PIIRedactor, get_logger, setup_logging
from swingbuddy.observability.metrics import setup_metrics

__all__ = [
    "PIIRedactor",
    "get_logger",
    "setup_logging",
    "setup_metrics",
]
