import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from src.utils.http.errors import ConfigError, is_retryable_error
from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """Attempt bookkeeping for a single outbound call."""

    max_attempts: int
    base_delay: float
    attempt: int = 0

    @property
    def total_attempts(self) -> int:
        return self.max_attempts + 1

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before ``attempt`` (1-based). No jitter."""
        if attempt < 2:
            return 0.0
        return self.base_delay * 2 ** (attempt - 2)


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
) -> T:
    """Run ``operation`` until it succeeds, retrying transient failures.

    The operation runs at most ``max_attempts + 1`` times. Only errors that
    ``is_retryable_error`` accepts are retried; anything else is raised on the
    spot. When every attempt fails the last error is raised unchanged.

    Raises:
        ConfigError: ``max_attempts`` is negative
    """
    if max_attempts < 0:
        raise ConfigError(
            f"max_attempts must be zero or more, got {max_attempts}", "", ""
        )

    state = RetryState(max_attempts=max_attempts, base_delay=base_delay)
    last_error: Exception = ConfigError("No attempt was made", "", "")

    for attempt in range(1, state.total_attempts + 1):
        state.attempt = attempt
        if attempt > 1:
            await _sleep(state.delay_before(attempt))

        try:
            result = await operation()
        except Exception as e:
            last_error = e
            if not is_retryable_error(e):
                logger.error(
                    "Non-retryable error, aborting",
                    attempt=attempt,
                    error=str(e),
                )
                raise
            if attempt < state.total_attempts:
                logger.warning(
                    "Request failed, retrying",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(e),
                    retry_delay=state.delay_before(attempt + 1),
                )
            continue

        if attempt > 1:
            logger.info("Request succeeded after retry", attempt=attempt)
        return result

    raise last_error
