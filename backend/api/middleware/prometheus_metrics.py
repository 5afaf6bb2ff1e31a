"""
Prometheus metrics shared by the API process and Celery workers.

HTTP request metrics come from prometheus-fastapi-instrumentator (see
backend.main); the collectors below cover the forecast pipeline.
"""

from prometheus_client import Counter, Gauge, Histogram

# Cache tiers (tier = "redis" | "database")
CACHE_HITS = Counter(
    "weather_cache_hits_total", "Weather cache hits", ["tier"]
)
CACHE_MISSES = Counter(
    "weather_cache_misses_total", "Weather cache misses", ["tier"]
)
CACHE_ERRORS = Counter(
    "weather_cache_errors_total",
    "Weather cache backend errors (absorbed as miss/skipped write)",
    ["tier", "operation"],
)

# Provider
PROVIDER_ERRORS = Counter(
    "weather_provider_errors_total",
    "Weather provider failures by error code",
    ["code"],
)
PROVIDER_LATENCY = Histogram(
    "weather_provider_request_seconds",
    "Weather provider call duration",
)

# Circuit breakers (0=CLOSED, 1=HALF_OPEN, 2=OPEN)
CIRCUIT_BREAKER_STATE = Gauge(
    "circuit_breaker_state", "Circuit breaker state", ["breaker"]
)

# Forecast outcomes (fresh_cache | live | stale_cache | fallback)
FORECAST_RESULTS = Counter(
    "weather_forecast_results_total",
    "Forecast responses by source",
    ["source"],
)

# Celery
CELERY_TASKS_TOTAL = Counter(
    "celery_tasks_total", "Celery tasks executed", ["task_name", "status"]
)
CELERY_TASK_DURATION = Histogram(
    "celery_task_duration_seconds", "Celery task duration", ["task_name"]
)
