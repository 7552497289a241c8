"""
Retry Handler service for managing retry logic and circuit breaker patterns.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Tuple

from techmarket.config.logging import get_logger

logger = get_logger(__name__)

CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_COOL_OFF = timedelta(minutes=5)


class CircuitOpenError(Exception):
    """Raised when calls for a key are short-circuited."""

    def __init__(self, operation_key: str):
        self.operation_key = operation_key
        super().__init__(f"Circuit breaker is open for {operation_key}")


class RetryHandler:
    """Retry handler with exponential backoff, jitter and a circuit breaker."""

    def __init__(self, base_delay: float = 1.0, max_delay: float = 30.0):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.logger = logger
        # key -> (state, last_failure, failure_count)
        self.circuit_breaker_state: Dict[str, Tuple[str, datetime, int]] = {}

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_retries: int = 3,
        operation_key: str = "default",
    ) -> Any:
        """
        Execute ``operation`` until it succeeds or retries run out.

        Raises:
            CircuitOpenError: If the circuit for ``operation_key`` is open
            Exception: The last error once all retries are exhausted
        """
        if self._is_circuit_open(operation_key):
            raise CircuitOpenError(operation_key)

        last_exception = None

        for attempt in range(max_retries + 1):
            try:
                result = await operation()
                self._record_success(operation_key)
                return result

            except Exception as e:
                last_exception = e
                self._record_failure(operation_key)

                if attempt == max_retries:
                    self.logger.error(
                        "Operation failed after all retries",
                        operation_key=operation_key,
                        total_attempts=attempt + 1,
                        final_error=str(e),
                    )
                    break

                delay = self._calculate_delay(attempt)
                self.logger.warning(
                    "Operation failed, retrying",
                    operation_key=operation_key,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    error=str(e),
                    next_retry_in_seconds=delay,
                )
                await asyncio.sleep(delay)

        raise last_exception

    def _calculate_delay(self, attempt: int) -> float:
        """Exponential backoff with +/-25% jitter, capped at ``max_delay``."""
        exponential_delay = self.base_delay * (2**attempt)
        jitter = exponential_delay * 0.25
        return min(exponential_delay + random.uniform(-jitter, jitter), self.max_delay)

    def _is_circuit_open(self, operation_key: str) -> bool:
        if operation_key not in self.circuit_breaker_state:
            return False

        state, last_failure, failure_count = self.circuit_breaker_state[operation_key]
        if state == "open":
            if datetime.now(timezone.utc) - last_failure > CIRCUIT_COOL_OFF:
                self.circuit_breaker_state[operation_key] = (
                    "half_open",
                    last_failure,
                    failure_count,
                )
                return False
            return True
        return False

    def _record_failure(self, operation_key: str) -> None:
        now = datetime.now(timezone.utc)
        state, _, failure_count = self.circuit_breaker_state.get(
            operation_key, ("closed", now, 0)
        )
        failure_count += 1

        if failure_count >= CIRCUIT_FAILURE_THRESHOLD:
            if state != "open":
                self.logger.warning(
                    "Circuit breaker opened",
                    operation_key=operation_key,
                    failure_count=failure_count,
                )
            self.circuit_breaker_state[operation_key] = ("open", now, failure_count)
        else:
            self.circuit_breaker_state[operation_key] = (state, now, failure_count)

    def _record_success(self, operation_key: str) -> None:
        if operation_key in self.circuit_breaker_state:
            del self.circuit_breaker_state[operation_key]

    def get_circuit_breaker_status(self, operation_key: str) -> dict:
        """Get circuit breaker status for monitoring."""
        if operation_key not in self.circuit_breaker_state:
            return {"state": "closed", "failure_count": 0, "last_failure": None}

        state, last_failure, failure_count = self.circuit_breaker_state[operation_key]
        return {
            "state": state,
            "failure_count": failure_count,
            "last_failure": last_failure.isoformat(),
        }
