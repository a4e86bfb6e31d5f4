"""
Backoff Retrier.

Re-invokes a fallible async operation with exponentially growing delays.

State machine:
    Attempting -> Succeeded   (operation returned)
    Attempting -> Failed      (attempts exhausted or retry_condition rejected)
    Attempting -> Delaying    (sleep, grow delay, attempt += 1) -> Attempting

The delay sequence is deterministic: ``min(initial_delay * factor**n,
max_delay)`` for n = 0, 1, 2, ... There is no jitter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from ..errors import ConfigurationError, normalize_error
from .calls import call_async
from .defaults import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCondition = Callable[[Exception], bool]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry options.

    Attributes:
        max_retries: Retries after the first attempt (0 = single attempt)
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any delay, in seconds
        backoff_factor: Multiplier applied to the delay after each retry
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if (
            isinstance(self.max_retries, bool)
            or not isinstance(self.max_retries, int)
            or self.max_retries < 0
        ):
            raise ConfigurationError(
                f"max_retries must be a non-negative integer, got {self.max_retries!r}"
            )
        if self.initial_delay < 0:
            raise ConfigurationError(
                f"initial_delay must be non-negative, got {self.initial_delay!r}"
            )
        if self.max_delay < 0:
            raise ConfigurationError(
                f"max_delay must be non-negative, got {self.max_delay!r}"
            )
        if self.backoff_factor <= 0:
            raise ConfigurationError(
                f"backoff_factor must be positive, got {self.backoff_factor!r}"
            )

    def delay_for(self, retry_index: int) -> float:
        """Delay slept before retry number ``retry_index`` (0-based)."""
        return min(self.initial_delay * self.backoff_factor**retry_index, self.max_delay)

    def delays(self) -> List[float]:
        """All delays a fully failing operation would sleep through."""
        return [self.delay_for(n) for n in range(self.max_retries)]


@dataclass
class RetryState:
    attempt: int
    delay: float


class BackoffRetrier:
    """
    Reusable retrier bound to a policy.

    Each call to ``run`` starts from a fresh RetryState, so a single
    retrier can be shared between independent operations.

    Example:
        >>> retrier = BackoffRetrier(
        ...     RetryPolicy(max_retries=2),
        ...     retry_condition=lambda err: "API key" not in str(err),
        ... )
        >>> articles = await retrier.run(lambda: fetch_articles(topic))
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        retry_condition: Optional[RetryCondition] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._retry_condition = retry_condition
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` until it succeeds or retries are exhausted.

        Raises:
            Exception: The last error raised by ``operation``
        """
        policy = self._policy
        state = RetryState(attempt=0, delay=min(policy.initial_delay, policy.max_delay))

        while True:
            try:
                return await call_async(operation)
            except Exception as exc:
                error = normalize_error(exc)
                if state.attempt >= policy.max_retries or not self._should_retry(error):
                    raise

            logger.warning(
                "Retry %d/%d after %.1fs: %s",
                state.attempt + 1,
                policy.max_retries,
                state.delay,
                str(error)[:100],
            )
            await self._sleep(state.delay)
            state.delay = min(state.delay * policy.backoff_factor, policy.max_delay)
            state.attempt += 1

    def _should_retry(self, error: Exception) -> bool:
        if self._retry_condition is None:
            return True
        return bool(self._retry_condition(error))


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    retry_condition: Optional[RetryCondition] = None,
    *,
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """
    Retry an async operation with exponential backoff.

    Args:
        operation: Zero-argument async callable to invoke
        max_retries: Maximum retries after the first attempt
        initial_delay: Delay before the first retry, in seconds
        max_delay: Cap for any single delay, in seconds
        backoff_factor: Delay multiplier between retries
        retry_condition: Predicate deciding whether an error is retryable
            (default: every error is retryable)
        sleep: Awaitable sleep used between attempts

    Returns:
        Result of the first successful attempt

    Raises:
        ConfigurationError: If any option is invalid
        Exception: The last error, after exhausting retries or when
            ``retry_condition`` rejects it
    """
    policy = RetryPolicy(
        max_retries=max_retries,
        initial_delay=initial_delay,
        max_delay=max_delay,
        backoff_factor=backoff_factor,
    )
    return await BackoffRetrier(policy, retry_condition, sleep=sleep).run(operation)
