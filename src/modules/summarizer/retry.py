import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Callable[[int], float]
Sleep = Callable[[float], Awaitable[None]]


class RetryExhaustedError(Exception):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def exponential_backoff(base: float = 1.0) -> Backoff:
    """Wait ``base * 2 ** (attempt - 1)`` seconds after failed attempt ``attempt``."""

    def delay(attempt: int) -> float:
        return base * 2 ** (attempt - 1)

    return delay


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff: Backoff = exponential_backoff(),
    sleep: Sleep = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> T:
    """Await ``operation`` until it succeeds or ``max_attempts`` is reached.

    There is no wait after the final attempt. When every attempt fails a
    ``RetryExhaustedError`` is raised, chained to the last failure.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_exc: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            last_exc = exc
            if attempt == max_attempts:
                logger.warning(
                    "Attempt %d/%d of %s failed: %s", attempt, max_attempts, description, exc
                )
                break
            wait = backoff(attempt)
            logger.warning(
                "Attempt %d/%d of %s failed: %s; retrying in %.1fs",
                attempt, max_attempts, description, exc, wait,
            )
            await sleep(wait)

    raise RetryExhaustedError(max_attempts, last_exc) from last_exc
