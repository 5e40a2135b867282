"""
Waiting utilities for test synchronization.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from common.errors import RetryExhaustedError
from common.test_logging import get_test_logger


def wait_until(
    fn: Callable[[], Any],
    error_with: str = "Timed out",
    timeout: int = 30,
    step: float = 0.5,
):
    """
    Wait until a function call returns truth value, given time step, and timeout.
    This function waits until function call returns truth value at the interval of step seconds.
    """
    for _ in range(math.ceil(timeout / step)):
        try:
            if fn():
                return
        except Exception as e:
            ety = type(e)
            get_test_logger().warning(f"caught exception {ety}, will still wait for timeout: {e}")
        time.sleep(step)
    raise AssertionError(error_with)


T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    How a polling loop waits between attempts.

    `max_attempts=None` means poll forever. `sleep` is injectable so tests
    can run loops without real delays.
    """

    interval: float
    max_attempts: int | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"interval must be non-negative, got {self.interval}")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    @classmethod
    def build(
        cls,
        interval: float,
        max_attempts: int | None,
        sleep: Callable[[float], None] | None = None,
    ) -> "RetryPolicy":
        return cls(interval, max_attempts, sleep or time.sleep)

    def attempts(self):
        """Yields 1-based attempt numbers, sleeping between them."""
        n = 0
        while self.max_attempts is None or n < self.max_attempts:
            if n > 0:
                self.sleep(self.interval)
            n += 1
            yield n


def poll_until(
    fn: Callable[[], T],
    predicate: Callable[[T], bool],
    policy: RetryPolicy,
    error_with: str = "Retries exhausted",
) -> T:
    """
    Call `fn` until `predicate` accepts its value, returning that value.

    Unlike `wait_until_with_value`, exceptions from `fn` are not swallowed:
    they abort the loop immediately.

    Raises:
        RetryExhaustedError: If the policy's attempts run out
    """
    for _ in policy.attempts():
        value = fn()
        if predicate(value):
            return value
    raise RetryExhaustedError(f"{error_with} after {policy.max_attempts} attempts")


def retry_until(
    fn: Callable[[], T | None],
    policy: RetryPolicy,
    error_with: str = "Retries exhausted",
    on_retry: Callable[[int], None] | None = None,
) -> T:
    """
    Call `fn` until it returns something other than `None`.

    `None` signals a retryable, not-yet-ready state. Exceptions propagate.

    Raises:
        RetryExhaustedError: If the policy's attempts run out
    """
    for attempt in policy.attempts():
        value = fn()
        if value is not None:
            return value
        if on_retry is not None:
            on_retry(attempt)
    raise RetryExhaustedError(f"{error_with} after {policy.max_attempts} attempts")
