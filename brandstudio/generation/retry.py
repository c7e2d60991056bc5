"""
Rate-limit retry for generative service calls.

Only rate-limit / quota failures are retried, with exponential backoff:
``initial_delay_ms * 2 ** attempt``. Every other error propagates on the
first failure.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from brandstudio.errors import RateLimited

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429
RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")


def is_rate_limited(error: BaseException) -> bool:
    """Check whether an error signals a rate-limit or quota condition."""
    if isinstance(error, RateLimited):
        return True

    for attr in ("code", "status_code", "status"):
        value = getattr(error, attr, None)
        if value == RATE_LIMIT_STATUS:
            return True
        if isinstance(value, str) and value.upper() == "RESOURCE_EXHAUSTED":
            return True

    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class RetryExecutor:
    """
    Bounded exponential-backoff retry, triggered only on rate limits.

    Example:
        retry = RetryExecutor(max_attempts=2, initial_delay_ms=1000)
        response = await retry.execute(lambda: service.generate(request))
    """

    def __init__(
        self,
        max_attempts: int = 2,
        initial_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay_ms = initial_delay_ms
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the given zero-based attempt."""
        return self.initial_delay_ms * (2 ** attempt) / 1000

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` until it succeeds or retries are exhausted.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt

        Returns:
            The operation's result

        Raises:
            RateLimited: If every attempt was rate limited
            Exception: The first non-rate-limit error, unchanged
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                if not is_rate_limited(e):
                    raise

                if attempt >= self.max_attempts - 1:
                    logger.error(f"[RETRY] Rate limited, giving up after {self.max_attempts} attempts")
                    if isinstance(e, RateLimited):
                        e.attempts = self.max_attempts
                        raise
                    raise RateLimited(
                        f"Rate limit persisted after {self.max_attempts} attempts: {e}",
                        attempts=self.max_attempts,
                    ) from e

                delay = self.delay_for(attempt)
                logger.warning(
                    f"[RETRY] Rate limited, waiting {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                await self._sleep(delay)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("unreachable")
