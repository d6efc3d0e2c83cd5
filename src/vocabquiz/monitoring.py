"""Monitoring configuration for the exercise engine."""
from prometheus_client import Counter, Histogram, start_http_server

from vocabquiz.config import settings

# Generation metrics
exercises_generated = Counter(
    "vocabquiz_exercises_generated_total",
    "Total number of exercises written by the generator",
)

generation_failures = Counter(
    "vocabquiz_generation_failures_total",
    "Total number of rejected or failed generation requests",
    ["reason"],
)

# Attempt metrics
attempts_recorded = Counter(
    "vocabquiz_attempts_recorded_total",
    "Total number of attempts appended to the ledger",
    ["result"],
)

# Reporting metrics
stats_query_duration = Histogram(
    "vocabquiz_stats_query_duration_seconds",
    "Duration of progress and statistics queries in seconds",
    ["query"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)


def start_monitoring(port: int = None) -> bool:
    """Start the Prometheus metrics server if monitoring is enabled."""
    if not settings.monitoring.enabled:
        return False
    start_http_server(port or settings.monitoring.port)
    return True
