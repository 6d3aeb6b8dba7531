"""
Prometheus metrics collection for taxflow

This module provides metrics instrumentation for monitoring import
throughput, jurisdiction lookup health and session outcomes.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# IMPORT METRICS
# =======================

rows_processed_total = Counter(
    name="taxflow_rows_processed_total",
    documentation="Total number of rows processed by the import engine",
    labelnames=["mode", "status"],  # mode: sync, stream; status: success, failed
    registry=REGISTRY,
)

row_failures_total = Counter(
    name="taxflow_row_failures_total",
    documentation="Row failures by error code",
    labelnames=["code"],
    registry=REGISTRY,
)

chunk_duration_seconds = Histogram(
    name="taxflow_chunk_resolution_duration_seconds",
    documentation="Time spent validating and resolving one chunk concurrently",
    labelnames=["mode"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=REGISTRY,
)

persist_duration_seconds = Histogram(
    name="taxflow_persist_duration_seconds",
    documentation="Time spent persisting a single row",
    labelnames=["operation"],  # operation: insert, update
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
    registry=REGISTRY,
)

# =======================
# JURISDICTION METRICS
# =======================

resolution_fallbacks_total = Counter(
    name="taxflow_resolution_fallbacks_total",
    documentation="Jurisdiction lookups that degraded to the static table",
    labelnames=["reason"],  # geocoder_unavailable, no_county, unmapped_fips
    registry=REGISTRY,
)

# =======================
# SESSION METRICS
# =======================

sessions_total = Counter(
    name="taxflow_import_sessions_total",
    documentation="Streaming import sessions by terminal outcome",
    labelnames=["outcome"],  # done, cancelled, failed
    registry=REGISTRY,
)

sessions_active = Gauge(
    name="taxflow_import_sessions_active",
    documentation="Streaming import sessions currently running",
    registry=REGISTRY,
)

rows_rolled_back_total = Counter(
    name="taxflow_rows_rolled_back_total",
    documentation="Rows deleted by cancellation rollback",
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: the HTTP server is only needed when the endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for the import engine and session service.

    Gives the pipeline one object to call instead of touching the
    module-level metrics directly.
    """

    def record_row(self, mode: str, success: bool, code: str | None = None) -> None:
        """
        Record a processed row.

        Args:
            mode: "sync" or "stream"
            success: Whether the row was persisted
            code: Error code for failed rows
        """
        status = "success" if success else "failed"
        increment_counter(rows_processed_total, 1, mode=mode, status=status)
        if not success and code:
            increment_counter(row_failures_total, 1, code=code)

    def record_fallback(self, reason: str) -> None:
        increment_counter(resolution_fallbacks_total, 1, reason=reason)

    def record_chunk(self, mode: str, duration_seconds: float) -> None:
        observe_histogram(chunk_duration_seconds, duration_seconds, mode=mode)

    def record_persist(self, operation: str, duration_seconds: float) -> None:
        observe_histogram(persist_duration_seconds, duration_seconds, operation=operation)

    def session_started(self) -> None:
        sessions_active.inc()

    def session_finished(self, outcome: str, rolled_back: int = 0) -> None:
        """
        Record a session reaching its terminal state.

        Args:
            outcome: "done", "cancelled" or "failed"
            rolled_back: Rows deleted by rollback (cancelled sessions)
        """
        sessions_active.dec()
        increment_counter(sessions_total, 1, outcome=outcome)
        if rolled_back:
            increment_counter(rows_rolled_back_total, rolled_back)
