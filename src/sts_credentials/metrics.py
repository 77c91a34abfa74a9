"""
Prometheus metrics for credential refresh monitoring.

Provides instrumentation for:
- Refresh outcomes (refreshed, skipped by cooldown, superseded, failed)
- Token command latency
- Acquisition errors by type
- Issue time of the published bundle
"""

from prometheus_client import Counter, Gauge, Histogram

refresh_total = Counter(
    "sts_refresh_total",
    "Total number of credential refresh calls by outcome",
    ["outcome"],  # outcome: refreshed, skipped, superseded, failed
)

acquisition_errors_total = Counter(
    "sts_acquisition_errors_total",
    "Total number of token command failures",
    ["error_type"],
)

acquisition_duration_seconds = Histogram(
    "sts_acquisition_duration_seconds",
    "Time spent running the token command and parsing its output",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

credential_issued_timestamp_seconds = Gauge(
    "sts_credential_issued_timestamp_seconds",
    "Epoch seconds at which the published credential bundle was issued",
)


def record_refresh(outcome: str) -> None:
    """Count one refresh call."""
    refresh_total.labels(outcome=outcome).inc()


def record_acquisition_error(error_type: str) -> None:
    """Count one failed token command run."""
    acquisition_errors_total.labels(error_type=error_type).inc()


def record_published(issued_at: int) -> None:
    """Track the issue time of a newly published bundle."""
    credential_issued_timestamp_seconds.set(issued_at)
