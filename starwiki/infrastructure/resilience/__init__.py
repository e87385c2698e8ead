"""Fail-fast guard for model backends."""

from starwiki.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    CircuitState,
    get_all_breakers,
    get_circuit_breaker,
    reset_all_breakers,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitOpenError",
    "CircuitState",
    "get_all_breakers",
    "get_circuit_breaker",
    "reset_all_breakers",
]
