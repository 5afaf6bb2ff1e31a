"""Resilience primitives for calls to external services.

- Circuit breaker (one instance per dependency)
- Timeout wrapper
- Static fallback forecast
"""

from .circuit_breaker import CircuitBreaker, CircuitBreakerSnapshot, CircuitState
from .fallback import get_weather_fallback_data
from .timeout import with_timeout

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerSnapshot",
    "CircuitState",
    "get_weather_fallback_data",
    "with_timeout",
]
