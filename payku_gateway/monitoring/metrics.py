"""
Prometheus metrics for the gateway proxy.

Tracks:
- PAYKU API calls by operation and outcome
- PAYKU API call duration
- Rate limit decisions
"""
from prometheus_client import Counter, Histogram

# PAYKU API metrics
gateway_requests_total = Counter(
    "payku_gateway_requests_total",
    "Total PAYKU API requests",
    ["operation", "status"],  # status: HTTP code, or "transport_error"
)

gateway_request_duration_seconds = Histogram(
    "payku_gateway_request_duration_seconds",
    "PAYKU API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)

# Rate limiting metrics
rate_limit_decisions_total = Counter(
    "rate_limit_decisions_total",
    "Total rate limit decisions on transaction creation",
    ["decision"],  # allowed, denied
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_gateway_call(operation: str, status: str, duration_seconds: float) -> None:
        """Record a PAYKU API call."""
        gateway_requests_total.labels(operation=operation, status=status).inc()
        gateway_request_duration_seconds.labels(operation=operation).observe(duration_seconds)

    @staticmethod
    def record_rate_limit_decision(allowed: bool) -> None:
        """Record a rate limit decision."""
        rate_limit_decisions_total.labels(decision="allowed" if allowed else "denied").inc()


# Export singleton instance
metrics = MetricsCollector()
