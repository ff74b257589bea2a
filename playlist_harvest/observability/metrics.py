"""
Prometheus metrics for the playlist harvester.

This module defines and exports Prometheus metrics for monitoring:
- Catalog API request rates and latencies
- Rows written per relation
- Failure ledger entries per phase
- Depth of the in-order write queue
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)


# Create a custom registry for this application
metrics_registry = CollectorRegistry()


# ============================================================================
# Catalog API Metrics
# ============================================================================

api_request_counter = Counter(
    "catalog_api_requests_total",
    "Total number of catalog API requests",
    ["endpoint", "status"],
    registry=metrics_registry,
)

api_request_duration = Histogram(
    "catalog_api_request_duration_seconds",
    "Catalog API request duration in seconds",
    ["endpoint"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

throttle_wait_counter = Counter(
    "catalog_throttle_waits_total",
    "Total number of throttle delays applied before outbound calls",
    registry=metrics_registry,
)

# ============================================================================
# Storage Metrics
# ============================================================================

rows_written_counter = Counter(
    "harvest_rows_written_total",
    "Total number of rows written per relation",
    ["relation"],
    registry=metrics_registry,
)

write_queue_depth = Gauge(
    "harvest_write_queue_depth",
    "Number of writes waiting in the in-order write queue",
    registry=metrics_registry,
)

# ============================================================================
# Failure Metrics
# ============================================================================

harvest_failures_counter = Counter(
    "harvest_failures_total",
    "Total number of per-item failures recorded in the ledger",
    ["phase"],
    registry=metrics_registry,
)

# ============================================================================
# Application Info
# ============================================================================

app_info = Info(
    "app",
    "Application information",
    registry=metrics_registry,
)

app_info.info({
    "name": "playlist-harvest",
    "version": "1.0.0",
})


def start_metrics_server(port: int) -> None:
    """
    Expose the metrics registry over HTTP.

    Args:
        port: TCP port for the exposition endpoint
    """
    start_http_server(port, registry=metrics_registry)
