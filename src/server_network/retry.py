"""Retry wrapper for cloud calls that may hit a concurrent mutation."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from .errors import CloudAPIError, ErrorKind, classify
from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def exponential_backoff(base: float, cap: float) -> Callable[[int], float]:
    """Return ``attempt -> min(cap, base * 2 ** (attempt - 1))``."""

    def backoff(attempt: int) -> float:
        return min(cap, base * 2 ** (attempt - 1))

    return backoff


def no_backoff(attempt: int) -> float:
    return 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for :func:`retry_on_conflict`.

    Attributes:
        max_attempts: Total number of calls allowed, at least 1.
        backoff: Maps the number of the failed attempt (1-based) to a delay in seconds.
    """

    max_attempts: int = 5
    backoff: Callable[[int], float] = no_backoff

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


async def retry_on_conflict(operation: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    """Run ``operation`` until it succeeds or fails with a non-retryable error.

    Only ``conflict`` and ``locked`` API errors are retried. Anything else is
    raised on the first occurrence. When all attempts are used up the last
    error is raised.
    """
    last_error: CloudAPIError | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except CloudAPIError as e:
            if classify(e) != ErrorKind.CONFLICT:
                raise
            last_error = e

        if attempt < policy.max_attempts:
            delay = policy.backoff(attempt)
            logger.debug(
                "retrying_after_conflict",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay=delay,
                code=last_error.code.value,
            )
            await asyncio.sleep(delay)

    logger.warning(
        "retries_exhausted",
        max_attempts=policy.max_attempts,
        code=last_error.code.value,
    )
    raise last_error
