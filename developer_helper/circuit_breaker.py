"""
Circuit breaker guarding calls to a remote dependency.

CLOSED lets calls through and counts consecutive failures. Reaching the
threshold moves to OPEN, which rejects calls until ``recovery_timeout`` has
elapsed; the next call then runs as a HALF_OPEN trial that either closes the
breaker again or reopens it.
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Tuple, Type

from .errors import ServiceUnavailableError
from .logging import get_logger


class CircuitBreakerState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(ServiceUnavailableError):
    """Raised instead of calling through an open breaker."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Circuit breaker '{name}' is OPEN - blocking call",
            details={"circuit_breaker": name},
        )


class CircuitBreaker:
    """Consecutive-failure breaker for async callables."""

    def __init__(self,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 expected_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                 name: str = "default",
                 clock: Callable[[], float] = time.monotonic):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions
        self.name = name
        self.logger = get_logger(f"circuit_breaker.{name}")
        self._clock = clock

        self._state = CircuitBreakerState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    def is_open(self) -> bool:
        return self._state is CircuitBreakerState.OPEN

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await ``func(*args, **kwargs)`` unless the breaker is open."""
        self._admit()
        try:
            result = await func(*args, **kwargs)
        except self.expected_exceptions:
            self._on_failure()
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        """Close the breaker and forget past failures."""
        self._move_to(CircuitBreakerState.CLOSED)
        self._consecutive_failures = 0

    def get_state(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout,
        }

    def _admit(self) -> None:
        if self._state is not CircuitBreakerState.OPEN:
            return
        if self._clock() - self._opened_at < self.recovery_timeout:
            raise CircuitBreakerOpenError(self.name)
        self._move_to(CircuitBreakerState.HALF_OPEN)

    def _on_success(self) -> None:
        self._consecutive_failures = 0
        if self._state is CircuitBreakerState.HALF_OPEN:
            self._move_to(CircuitBreakerState.CLOSED)

    def _on_failure(self) -> None:
        self._consecutive_failures += 1
        trial_failed = self._state is CircuitBreakerState.HALF_OPEN
        if trial_failed or self._consecutive_failures >= self.failure_threshold:
            self._opened_at = self._clock()
            self._move_to(CircuitBreakerState.OPEN)

    def _move_to(self, state: CircuitBreakerState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        log = self.logger.warning if state is CircuitBreakerState.OPEN else self.logger.info
        log(
            "Circuit breaker state changed",
            previous=previous.value,
            state=state.value,
            consecutive_failures=self._consecutive_failures,
        )
