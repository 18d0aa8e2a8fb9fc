"""
Prometheus metrics for the scheduling engine.

Service timings come from the @measure_operation decorator; the domain
counters below track what the background sweeps actually changed.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Registry exposed by /metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "tutorsched_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "tutorsched_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "tutorsched_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

occurrences_generated_total = Counter(
    "tutorsched_occurrences_generated_total",
    "Class occurrences materialized from recurring patterns",
    registry=REGISTRY,
)

occurrences_reanchored_total = Counter(
    "tutorsched_occurrences_reanchored_total",
    "Class occurrences shifted after a DST transition",
    ["timezone"],
    registry=REGISTRY,
)

sweep_items_total = Counter(
    "tutorsched_sweep_items_total",
    "Items processed by background sweeps by outcome",
    ["sweep", "outcome"],  # outcome: succeeded | failed
    registry=REGISTRY,
)

notifications_outbox_total = Counter(
    "tutorsched_notifications_outbox_total",
    "Notification outbox events by terminal status",
    ["status", "event_type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'AvailabilityEngine')
            operation: Operation name (e.g., 'is_available')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_occurrences_generated(count: int) -> None:
        if count > 0:
            occurrences_generated_total.inc(count)
            PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_occurrences_reanchored(timezone_name: str, count: int = 1) -> None:
        if count > 0:
            occurrences_reanchored_total.labels(timezone=timezone_name).inc(count)
            PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_sweep_outcome(sweep: str, succeeded: int, failed: int) -> None:
        sweep_items_total.labels(sweep=sweep, outcome="succeeded").inc(succeeded)
        sweep_items_total.labels(sweep=sweep, outcome="failed").inc(failed)
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_notification_outcome(event_type: str, status: str) -> None:
        """Record terminal outcome for notification outbox delivery."""
        notifications_outbox_total.labels(status=status, event_type=event_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        with PrometheusMetrics._cache_lock:
            if PrometheusMetrics._cache_payload is None:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
