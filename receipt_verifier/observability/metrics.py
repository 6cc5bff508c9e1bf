"""
Metrics Collection with Prometheus.

Counters and histograms for receipt verification, registered on the default
prometheus_client registry so the host application's exporter picks them up.
"""

import time
from enum import Enum
from typing import Any

from prometheus_client import Counter, Histogram, Info

from receipt_verifier.config import get_settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENVIRONMENT = "environment"
    STATUS_CODE = "status_code"
    OUTCOME = "outcome"
    OPERATION = "operation"
    ERROR_TYPE = "error_type"


class VerifierMetrics:
    """
    Centralized metrics for the receipt verifier.

    Covers:
    - verifyReceipt HTTP attempts (per environment, by HTTP status)
    - Verifications (rate, duration, outcome)
    - Sandbox fallbacks
    - Errors by type
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""
        settings = get_settings()

        self.service_info = Info(
            "receipt_verifier_service",
            "Receipt verifier information",
        )
        self.service_info.info(
            {
                "version": settings.version,
                "service_name": settings.service_name,
            }
        )

        self.http_requests_total = Counter(
            "receipt_verifier_http_requests_total",
            "Total verifyReceipt HTTP requests",
            [MetricLabels.ENVIRONMENT.value, MetricLabels.STATUS_CODE.value],
        )

        self.verifications_total = Counter(
            "receipt_verifier_verifications_total",
            "Total receipt verifications by outcome",
            [MetricLabels.OUTCOME.value],
        )

        self.verification_duration_seconds = Histogram(
            "receipt_verifier_verification_duration_seconds",
            "Receipt verification duration in seconds, including any sandbox fallback",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
        )

        self.sandbox_fallbacks_total = Counter(
            "receipt_verifier_sandbox_fallbacks_total",
            "Total verifications resent to the sandbox after status 21007",
        )

        self.errors_total = Counter(
            "receipt_verifier_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE.value, MetricLabels.OPERATION.value],
        )

    @property
    def enabled(self) -> bool:
        return get_settings().metrics_enabled

    def record_http_request(self, environment: str, status_code: int) -> None:
        """Record one verifyReceipt HTTP attempt."""
        if not self.enabled:
            return
        self.http_requests_total.labels(
            environment=environment, status_code=str(status_code)
        ).inc()

    def record_verification(self, outcome: str, duration: float) -> None:
        """Record a finished verification."""
        if not self.enabled:
            return
        self.verifications_total.labels(outcome=outcome).inc()
        self.verification_duration_seconds.observe(duration)

    def record_sandbox_fallback(self) -> None:
        if not self.enabled:
            return
        self.sandbox_fallbacks_total.inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        if not self.enabled:
            return
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = VerifierMetrics()


class track_verification:
    """
    Context manager timing one verification and recording its outcome.

    The outcome defaults to "error" if the block raises, otherwise "success"
    unless set explicitly.

    Usage:
        with track_verification() as tracker:
            result = ...
            tracker.set_outcome("status_21003")
    """

    def __init__(self) -> None:
        self.outcome: str | None = None
        self.start_time: float = 0.0

    def set_outcome(self, outcome: str) -> None:
        """Set the verification outcome label."""
        self.outcome = outcome

    def __enter__(self) -> "track_verification":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        duration = time.perf_counter() - self.start_time
        if exc_type is not None:
            outcome = "error"
            metrics.record_error(exc_type.__name__, "verify")
        else:
            outcome = self.outcome or "success"
        metrics.record_verification(outcome, duration)
