"""Circuit Breaker for model backends.

A page makes dozens of model calls. When the backend is down every one of
them would wait out its own timeout and retries, so after enough consecutive
transport failures the breaker opens and calls fail fast with
CircuitOpenError until the recovery timeout has passed. Then a limited
number of probe calls decide whether it closes again.

States: closed (calls go through), open (calls rejected), half_open (probing).
"""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Call rejected without reaching the backend."""


@dataclass
class CircuitBreakerConfig:
    """Thresholds and the exception types that count as backend failures."""

    failure_threshold: int = 5
    recovery_timeout: float = 30.0  # seconds open before probing
    success_threshold: int = 2  # probe successes needed to close
    tracked: tuple[type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.recovery_timeout <= 0:
            raise ValueError("recovery_timeout must be > 0")
        if self.success_threshold < 1:
            raise ValueError("success_threshold must be >= 1")


@dataclass
class CircuitBreaker:
    """Guards an async backend call.

    Usage:
        breaker = get_circuit_breaker("ollama")
        response = await breaker.call(lambda: client.chat(...))
    """

    name: str
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failures: int = field(default=0, init=False)
    _probe_successes: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def retry_after(self) -> float:
        """Seconds until an open circuit lets a probe through; 0 otherwise."""
        if self._state != CircuitState.OPEN:
            return 0.0
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.config.recovery_timeout - elapsed)

    def _move_to(self, state: CircuitState) -> None:
        if state == self._state:
            return
        log = logger.warning if state == CircuitState.OPEN else logger.info
        log("circuit %s: %s -> %s", self.name, self._state.value, state.value)
        self._state = state
        if state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        self._probe_successes = 0
        if state == CircuitState.CLOSED:
            self._failures = 0

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """Await func() unless the circuit is open.

        Raises:
            CircuitOpenError: Circuit open and recovery timeout not reached.

        """
        async with self._lock:
            if self._state == CircuitState.OPEN:
                wait = self.retry_after
                if wait > 0:
                    raise CircuitOpenError(f"{self.name} backend unavailable, retry in {wait:.1f}s")
                self._move_to(CircuitState.HALF_OPEN)

        try:
            result = await func()
        except self.config.tracked:
            await self._record_failure()
            raise
        await self._record_success()
        return result

    async def _record_success(self) -> None:
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._probe_successes += 1
                if self._probe_successes >= self.config.success_threshold:
                    self._move_to(CircuitState.CLOSED)
            else:
                self._failures = 0

    async def _record_failure(self) -> None:
        async with self._lock:
            self._failures += 1
            if (
                self._state == CircuitState.HALF_OPEN
                or self._failures >= self.config.failure_threshold
            ):
                self._move_to(CircuitState.OPEN)

    def reset(self) -> None:
        self._move_to(CircuitState.CLOSED)

    def stats(self) -> dict:
        return {
            "state": self._state.value,
            "failures": self._failures,
            "retry_after": round(self.retry_after, 1),
        }


_breakers: dict[str, CircuitBreaker] = {}
_registry_lock = threading.Lock()


def get_circuit_breaker(name: str, config: CircuitBreakerConfig | None = None) -> CircuitBreaker:
    """Shared breaker per backend name; config applies only on first creation."""
    with _registry_lock:
        breaker = _breakers.get(name)
        if breaker is None:
            breaker = _breakers[name] = CircuitBreaker(
                name=name, config=config or CircuitBreakerConfig()
            )
        return breaker


def get_all_breakers() -> dict[str, dict]:
    """Stats per registered breaker, for /health."""
    with _registry_lock:
        return {name: b.stats() for name, b in _breakers.items()}


def reset_all_breakers() -> None:
    with _registry_lock:
        for breaker in _breakers.values():
            breaker.reset()
