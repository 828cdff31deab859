"""
Observability Module for the Reconciliation Engine

Provides:
- Structured logging with correlation IDs
- Metrics collection (check outcomes, reconstructions, timings)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_check,
    record_reconstruction,
    record_reconciliation,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_check",
    "record_reconstruction",
    "record_reconciliation",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
