"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError, InterfaceError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Substrings of driver errors that are worth another attempt
TRANSIENT_ERRORS = (
    "database is locked",
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "timeout",
    "too many clients",
)


def is_transient(error: Exception) -> bool:
    message = str(error).lower()
    return any(fragment in message for fragment in TRANSIENT_ERRORS)


async def retry_on_lock(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
) -> T:
    """Run ``coro_func``, retrying transient lock/connection errors with backoff.

    The sweep and the scheduled jobs write to the same tables, so SQLite lock
    contention and PostgreSQL connection churn are expected now and then.

    Args:
        coro_func: Callable returning the coroutine to await (e.g. ``session.commit``)
        max_retries: Total number of attempts
        base_delay: Delay before the second attempt, doubled on every retry

    Raises:
        OperationalError/InterfaceError: If the error is not transient or retries run out
    """
    for attempt in range(1, max_retries + 1):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError) as e:
            if attempt == max_retries or not is_transient(e):
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt}/{max_retries})")
            await asyncio.sleep(delay)
    raise RuntimeError("retry_on_lock called with max_retries < 1")
