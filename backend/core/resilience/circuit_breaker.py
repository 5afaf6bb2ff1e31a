"""
Circuit breaker for a single external dependency.

States:
    CLOSED    - calls go through; consecutive failures are counted
    OPEN      - calls are short-circuited to the fallback (or CircuitOpenError)
    HALF_OPEN - recovery window elapsed; one trial call is let through

Transitions are evaluated lazily on each `execute()` call, there are no
timers. One breaker instance guards one dependency and may be shared by every
coroutine and thread calling it: counters are only read and written under
`self._lock`, the awaited operation runs outside of it.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from backend.api.middleware.prometheus_metrics import CIRCUIT_BREAKER_STATE
from backend.core.errors import CircuitOpenError

T = TypeVar("T")

Fallback = Callable[[Exception], Awaitable[Any]]


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


_STATE_VALUE = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


@dataclass(frozen=True)
class CircuitBreakerSnapshot:
    """Read-only copy of breaker state (for health checks and tests)."""

    name: str
    state: CircuitState
    failures: int
    last_failure_time: float | None


class CircuitBreaker:
    """
    Failure-counting breaker with lazy OPEN -> HALF_OPEN recovery.

    Args:
        name: Dependency name (logs and metrics label)
        failure_threshold: Consecutive failures that open the circuit
        recovery_timeout: Seconds to stay OPEN after the last failure
        clock: Monotonic time source (injectable for tests)

    Example:
        breaker = CircuitBreaker("openweather", failure_threshold=3)
        data = await breaker.execute(
            lambda: client.fetch_weather(location),
            fallback=lambda exc: use_cached_or_static(exc),
        )
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_time: float | None = None
        self._trial_in_flight = False
        self._publish_state(CircuitState.CLOSED)

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def get_state(self) -> CircuitBreakerSnapshot:
        with self._lock:
            return CircuitBreakerSnapshot(
                name=self.name,
                state=self._state,
                failures=self._failures,
                last_failure_time=self._last_failure_time,
            )

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._last_failure_time = None
            self._trial_in_flight = False
        self._publish_state(CircuitState.CLOSED)
        logger.info(f"🔌 Circuit '{self.name}' manually reset to CLOSED")

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        fallback: Fallback | None = None,
    ) -> T | Any:
        """
        Run `operation` through the breaker.

        Args:
            operation: Zero-argument coroutine factory for the guarded call
            fallback: Called with the triggering exception when the circuit
                is open or the operation fails

        Returns:
            The operation's result, or the fallback's result

        Raises:
            CircuitOpenError: Circuit open and no fallback given
            Exception: Whatever `operation` raised, when no fallback given
        """
        is_trial = self._acquire_permission()
        if is_trial is None:
            exc = CircuitOpenError(self.name)
            logger.debug(f"🚫 Circuit '{self.name}' OPEN, call short-circuited")
            if fallback is not None:
                return await fallback(exc)
            raise exc

        try:
            result = await operation()
        except Exception as e:
            self._record_failure(is_trial, e)
            if fallback is not None:
                return await fallback(e)
            raise
        except BaseException:
            # Cancelled: no verdict on the dependency, free the trial slot
            self._release_trial(is_trial)
            raise

        self._record_success(is_trial)
        return result

    # ------------------------------------------------------------------
    # State transitions (all under self._lock)
    # ------------------------------------------------------------------

    def _acquire_permission(self) -> bool | None:
        """
        Decide whether a call may proceed.

        Returns:
            False for a normal CLOSED call, True for the HALF_OPEN trial,
            None when the call must be short-circuited.
        """
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return False

            if self._state is CircuitState.OPEN:
                elapsed = self._clock() - (self._last_failure_time or 0.0)
                if elapsed < self.recovery_timeout:
                    return None
                self._state = CircuitState.HALF_OPEN
                logger.info(
                    f"🟡 Circuit '{self.name}' HALF_OPEN after "
                    f"{elapsed:.1f}s, allowing trial call"
                )

            # HALF_OPEN: only one trial at a time
            if self._trial_in_flight:
                return None
            self._trial_in_flight = True

        self._publish_state(CircuitState.HALF_OPEN)
        return True

    def _record_success(self, is_trial: bool) -> None:
        with self._lock:
            recovered = self._state is not CircuitState.CLOSED
            self._failures = 0
            self._state = CircuitState.CLOSED
            if is_trial:
                self._trial_in_flight = False
        if recovered:
            logger.info(f"🟢 Circuit '{self.name}' CLOSED, dependency recovered")
            self._publish_state(CircuitState.CLOSED)

    def _record_failure(self, is_trial: bool, error: Exception) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_time = self._clock()
            if is_trial:
                self._trial_in_flight = False
            opened = (
                self._failures >= self.failure_threshold
                and self._state is not CircuitState.OPEN
            )
            if opened:
                self._state = CircuitState.OPEN
            failures = self._failures

        if opened:
            logger.warning(
                f"🔴 Circuit '{self.name}' OPEN after {failures} failures "
                f"| last_error={type(error).__name__}: {error}"
            )
            self._publish_state(CircuitState.OPEN)
        else:
            logger.debug(
                f"Circuit '{self.name}' failure {failures}/"
                f"{self.failure_threshold}: {type(error).__name__}"
            )

    def _release_trial(self, is_trial: bool) -> None:
        if not is_trial:
            return
        with self._lock:
            self._trial_in_flight = False

    def _publish_state(self, state: CircuitState) -> None:
        """Export `state`, as read under the lock by the caller."""
        CIRCUIT_BREAKER_STATE.labels(breaker=self.name).set(_STATE_VALUE[state])
