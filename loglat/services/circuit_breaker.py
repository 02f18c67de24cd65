"""
Circuit breaker guarding calls to the indexing endpoint.
"""
import time
from enum import Enum
from threading import RLock
from typing import Callable, Tuple, Type

from loglat.monitoring.logger import logger


class CircuitState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreakerOpen(Exception):
    """Raised on entry while the circuit is open."""


class CircuitBreaker:
    """Stops calling a failing dependency until it has had time to recover.

    Used as a context manager around each call. Exceptions of
    ``expected_exception_types`` count as failures and are never suppressed.
    """

    def __init__(
        self,
        name: str = "index",
        failure_threshold: int = 5,
        recovery_timeout: float = 5.0,
        expected_exception_types: Tuple[Type[BaseException], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception_types = expected_exception_types
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._lock = RLock()

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def __enter__(self) -> None:
        with self._lock:
            if self._state != CircuitState.OPEN:
                return
            if self._clock() - self._opened_at >= self.recovery_timeout:
                # One trial call is let through; __exit__ decides the outcome.
                self._transition_to(CircuitState.HALF_OPEN)
            else:
                raise CircuitBreakerOpen(f"circuit {self.name} is open")

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        with self._lock:
            if exc_type is None:
                self._record_success()
            elif issubclass(exc_type, self.expected_exception_types):
                self._record_failure()
            return False

    def _record_failure(self) -> None:
        self._failure_count += 1
        if self._state == CircuitState.HALF_OPEN or (
            self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold
        ):
            self._opened_at = self._clock()
            self._transition_to(CircuitState.OPEN)

    def _record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0

    def _transition_to(self, new_state: CircuitState) -> None:
        if self._state != new_state:
            logger.warning(
                "circuit breaker state change",
                extra={
                    "ctx_circuit": self.name,
                    "ctx_from": self._state.value,
                    "ctx_to": new_state.value,
                    "ctx_failures": self._failure_count,
                },
            )
            self._state = new_state


__all__ = ["CircuitBreaker", "CircuitBreakerOpen", "CircuitState"]
