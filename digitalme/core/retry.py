import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


def retry_always(exc: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """
    Explicit retry policy: how many attempts, how long to wait, and which errors deserve another try.

    The delay before attempt ``n + 1`` is ``delay_seconds * backoff ** (n - 1)``. Errors rejected by
    ``retry_on`` are re-raised immediately without consuming further attempts.
    """

    max_attempts: int = 2
    delay_seconds: float = 2.0
    backoff: float = 1.0
    retry_on: Callable[[BaseException], bool] = retry_always
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False, compare=False)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.delay_seconds * (self.backoff ** (attempt - 1))

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        return attempt < self.max_attempts and self.retry_on(exc)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """
        Run ``operation`` until it succeeds, raises a non-retryable error, or attempts run out.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            description: Label used in log messages

        Returns:
            The result of the first successful attempt
        """
        attempts = max(1, self.max_attempts)
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not self.should_retry(exc, attempt):
                    if attempt > 1:
                        logger.error(f"{description} failed after {attempt} attempt(s): {exc}")
                    raise
                wait_time = self.delay_for(attempt)
                logger.warning(
                    f"{description} failed: {exc}. Retrying in {wait_time}s... (Attempt {attempt}/{attempts})"
                )
                await self.sleep(wait_time)
                attempt += 1
