"""
Observability module for logging and metrics.

This module provides:
- Prometheus metrics for API calls, writes and failures
- Structured logging with per-phase context
"""

from playlist_harvest.observability.metrics import (
    metrics_registry,
    api_request_counter,
    api_request_duration,
    throttle_wait_counter,
    rows_written_counter,
    write_queue_depth,
    harvest_failures_counter,
    start_metrics_server,
)

from playlist_harvest.observability.logging import (
    setup_logging,
    log_context,
)

__all__ = [
    # Metrics
    "metrics_registry",
    "api_request_counter",
    "api_request_duration",
    "throttle_wait_counter",
    "rows_written_counter",
    "write_queue_depth",
    "harvest_failures_counter",
    "start_metrics_server",
    # Logging
    "setup_logging",
    "log_context",
]
