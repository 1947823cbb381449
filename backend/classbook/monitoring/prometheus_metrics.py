"""
Prometheus metrics module for classbook.

Service timings come from the @measure_operation decorator; the domain
counters record materialization outcomes, denied authorization checks and
cancellation decisions.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "classbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "classbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "classbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

materializations_total = Counter(
    "classbook_materializations_total",
    "Materialization requests by outcome",
    ["outcome"],  # created | existing | concurrent
    registry=REGISTRY,
)

authorization_denied_total = Counter(
    "classbook_authorization_denied_total",
    "Authorization checks that failed against durable state",
    ["reason"],  # not_a_participant | not_owner
    registry=REGISTRY,
)

cancellation_decisions_total = Counter(
    "classbook_cancellation_decisions_total",
    "Cancellation policy evaluations",
    ["role", "chargeable"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

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
            service: Service name (e.g., 'MaterializationService')
            operation: Operation/method name (e.g., 'materialize')
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
    def inc_materialization(outcome: str) -> None:
        materializations_total.labels(outcome=outcome).inc()

    @staticmethod
    def inc_authorization_denied(reason: str) -> None:
        authorization_denied_total.labels(reason=reason).inc()

    @staticmethod
    def inc_cancellation_decision(role: str, chargeable: bool) -> None:
        cancellation_decisions_total.labels(
            role=role, chargeable="true" if chargeable else "false"
        ).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
