"""
Observability module - Logging, Metrics, and Tracing.
"""

from receipt_verifier.observability.logging import log_context, setup_logging
from receipt_verifier.observability.metrics import metrics, track_verification
from receipt_verifier.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "get_tracer",
    "log_context",
    "metrics",
    "setup_logging",
    "setup_tracing",
    "track_verification",
]
