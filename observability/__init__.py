"""
Observability infrastructure for the rental listings aggregator.

Provides:
- Structured logging with correlation IDs
- Prometheus metrics
- Source health checks
"""

from .logging import get_logger, correlation_id_context, get_correlation_id, setup_logging
from .metrics import metrics_registry

__all__ = [
    "get_logger",
    "correlation_id_context",
    "get_correlation_id",
    "setup_logging",
    "metrics_registry",
]
