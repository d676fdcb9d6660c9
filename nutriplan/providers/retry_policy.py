"""Retry policy with exponential backoff for model backend calls."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from nutriplan.data_layer.exceptions import PlanGenerationError


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def is_retryable(error: PlanGenerationError) -> bool:
    """Only transient backend errors are worth another attempt."""
    return getattr(error, "retryable", False)


@dataclass
class RetryPolicy:
    """How many times to call one model and how long to wait in between.

    Attributes:
        max_attempts: Total calls per model variant (first call included)
        base_delay: Seconds before the first retry; doubles each retry
        sleep: Awaitable sleep, replaced by a fake in tests
        retryable: Predicate deciding whether a classified error is retried
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    sleep: Sleep = field(default=asyncio.sleep, repr=False)
    retryable: Callable[[PlanGenerationError], bool] = field(default=is_retryable, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay cannot be negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed ``attempt`` (0-based): base * 2^attempt."""
        return self.base_delay * (2 ** attempt)

    def should_retry(self, error: PlanGenerationError, attempt: int) -> bool:
        """Whether to call again after ``attempt`` (0-based) failed with ``error``."""
        return attempt + 1 < self.max_attempts and self.retryable(error)

    async def wait(self, attempt: int, context: Optional[str] = None):
        delay = self.delay_for(attempt)
        logger.warning(
            "[%s] Attempt %d failed (retryable), waiting %.1fs",
            context or "retry", attempt + 1, delay,
        )
        await self.sleep(delay)
