"""
Exponential-backoff retry for async operations.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from .logging import get_logger


class RetryConfig:
    """Attempt budget and backoff schedule.

    The delay after the n-th failed attempt is
    ``min(base_delay * exponential_base ** (n - 1), max_delay)``.
    """

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base

    @classmethod
    def from_retries(cls, retries: int, base_delay: float) -> "RetryConfig":
        """Schedule for ``retries`` retries after the first try: base, 2*base, 4*base, ..."""
        return cls(
            max_attempts=retries + 1,
            base_delay=base_delay,
            max_delay=base_delay * 2 ** max(retries - 1, 0),
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return max(0.0, min(self.base_delay * self.exponential_base ** (attempt - 1), self.max_delay))


class RetryError(Exception):
    """All attempts failed; ``last_exception`` is the final failure."""

    def __init__(self, message: str, last_exception: BaseException, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


async def retry_async(func: Callable[..., Awaitable[Any]],
                      *args: Any,
                      exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                      config: Optional[RetryConfig] = None,
                      **kwargs: Any) -> Any:
    """Await ``func(*args, **kwargs)``, retrying on ``exceptions``.

    Exceptions outside ``exceptions`` propagate immediately.
    """
    config = config or RetryConfig()
    name = getattr(func, "__qualname__", None) or repr(func)
    logger = get_logger("retry")

    for attempt in range(1, config.max_attempts + 1):
        try:
            result = await func(*args, **kwargs)
        except exceptions as e:
            if attempt == config.max_attempts:
                logger.error("All retry attempts exhausted", function=name, attempts=attempt, error=str(e))
                raise RetryError(
                    f"Function {name} failed after {attempt} attempts",
                    last_exception=e,
                    attempts=attempt,
                ) from e

            delay = config.delay_for(attempt)
            logger.warning("Attempt failed, retrying", function=name, attempt=attempt, delay=delay, error=str(e))
            await asyncio.sleep(delay)
        else:
            if attempt > 1:
                logger.info("Retry succeeded", function=name, attempt=attempt)
            return result

    raise AssertionError("unreachable")  # pragma: no cover
