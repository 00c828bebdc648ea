"""
Retry policies for calls to unreliable external services.

A RetryPolicy bundles the three decisions every retry loop makes:
- how many additional attempts are allowed (max_retries)
- how long to wait before the next attempt (backoff)
- which failures are worth another attempt (retry_on)

The loop itself is delegated to tenacity, so call sites only describe
a single attempt and raise a retryable exception when it fails.

Usage:
    from core.retry import RetryPolicy, exponential_backoff

    policy = RetryPolicy(
        max_retries=2,
        backoff=exponential_backoff(),
        retry_on=(TransientGatewayError,),
        name="phonepe.initiate_payment",
    )

    # Attempts: 1 -> wait 1s -> 2 -> wait 2s -> 3
    result = policy.call(send_request, payload)

    # Bound the whole loop by wall-clock time
    result = policy.call(send_request, payload, deadline_seconds=10)

Note:
    The last exception is re-raised once attempts are exhausted.
    Callers decide how to translate it (failure result, None, etc.).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeVar

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
)

if TYPE_CHECKING:
    from typing import Any

    from tenacity import RetryCallState


logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Backoff Functions
# =============================================================================


def exponential_backoff(base: float = 1.0) -> Callable[[int], float]:
    """
    Delay doubling with each attempt: base * 2**attempt.

    Args:
        base: Delay in seconds after the first failed attempt

    Returns:
        Function mapping a 0-indexed attempt number to a delay in seconds

    Example:
        delay = exponential_backoff()
        delay(0), delay(1), delay(2)  # 1.0, 2.0, 4.0
    """

    def _delay(attempt: int) -> float:
        return base * (2**attempt)

    return _delay


def linear_backoff(step: float = 1.0) -> Callable[[int], float]:
    """
    Delay growing by a fixed step: step * (attempt + 1).

    Example:
        delay = linear_backoff()
        delay(0), delay(1), delay(2)  # 1.0, 2.0, 3.0
    """

    def _delay(attempt: int) -> float:
        return step * (attempt + 1)

    return _delay


# =============================================================================
# Retry Policy
# =============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """
    Declarative retry policy executed with tenacity.

    Attributes:
        max_retries: Additional attempts after the first one (0 = no retry)
        backoff: Function of the 0-indexed failed attempt returning seconds
        retry_on: Exception types that trigger another attempt
        sleep: Sleep function (injectable for tests)
        name: Operation name used in log records
    """

    max_retries: int
    backoff: Callable[[int], float]
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = time.sleep
    name: str = "operation"

    def __post_init__(self) -> None:
        """Validate the policy after initialization."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be zero or positive")

    @property
    def max_attempts(self) -> int:
        """Total number of attempts including the first one."""
        return self.max_retries + 1

    def retrying(self, deadline_seconds: float | None = None) -> Retrying:
        """
        Build the tenacity controller for one retry loop.

        Args:
            deadline_seconds: Optional wall-clock budget for the whole loop.
                No further attempt starts once it has elapsed.

        Returns:
            Configured tenacity.Retrying instance
        """
        stop = stop_after_attempt(self.max_attempts)
        if deadline_seconds is not None:
            stop = stop | stop_after_delay(deadline_seconds)

        return Retrying(
            stop=stop,
            wait=self._wait,
            retry=retry_if_exception_type(self.retry_on),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        deadline_seconds: float | None = None,
        **kwargs: Any,
    ) -> T:
        """
        Run fn under this policy.

        Raises:
            The last retryable exception once attempts are exhausted, or
            any non-retryable exception immediately.
        """
        return self.retrying(deadline_seconds)(fn, *args, **kwargs)

    def _wait(self, retry_state: RetryCallState) -> float:
        # tenacity counts attempts from 1
        return self.backoff(retry_state.attempt_number - 1)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"{self.name}: attempt {retry_state.attempt_number}/{self.max_attempts} "
            f"failed, retrying in {delay:.1f}s",
            extra={
                "operation": self.name,
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_attempts,
                "delay_seconds": delay,
                "error": str(error) if error else None,
            },
        )
