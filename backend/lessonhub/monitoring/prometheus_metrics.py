"""
Prometheus metrics for LessonHub.

Service timings come from ``@BaseService.measure_operation``. Scheduling-specific
counters track degraded paths: failed conflict sub-checks, skipped status batches
and video-room recreation outcomes.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so tests and multiple app instances don't collide with the default one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "lessonhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "lessonhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "lessonhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

conflict_check_failures_total = Counter(
    "lessonhub_conflict_check_failures_total",
    "Conflict sub-checks that failed and were reported as synthetic conflicts",
    ["check"],  # availability | lesson | time_off | student
    registry=REGISTRY,
)

status_batch_failures_total = Counter(
    "lessonhub_status_batch_failures_total",
    "Lesson status batches skipped because their queries failed",
    ["kind"],  # attendance | completion
    registry=REGISTRY,
)

video_room_recreations_total = Counter(
    "lessonhub_video_room_recreations_total",
    "Video room recreation attempts after a tutor reassignment",
    ["status"],  # success | error
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records LessonHub metrics and renders the exposition payload."""

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
            service: Service name (e.g., 'AvailabilityCheckService')
            operation: Operation name (e.g., 'perform_full_availability_check')
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

    @staticmethod
    def inc_conflict_check_failure(check: str) -> None:
        conflict_check_failures_total.labels(check=check).inc()

    @staticmethod
    def inc_status_batch_failure(kind: str) -> None:
        status_batch_failures_total.labels(kind=kind).inc()

    @staticmethod
    def inc_video_room_recreation(status: str) -> None:
        video_room_recreations_total.labels(status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate metrics in Prometheus text format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
