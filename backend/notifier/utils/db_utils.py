"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Iterator, TypeVar

from sqlalchemy.exc import OperationalError, InterfaceError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# The store accepts at most this many values in a single IN (...) filter
MAX_IN_QUERY_VALUES = 10

_TRANSIENT_MESSAGES = (
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "database is locked",
    "timeout",
    "too many clients",
)


def chunked(values: Iterable[T], size: int = MAX_IN_QUERY_VALUES) -> Iterator[list[T]]:
    """Split ``values`` into consecutive lists of at most ``size`` items.

    >>> list(chunked(range(25)))  # doctest: +ELLIPSIS
    [[0, ..., 9], [10, ..., 19], [20, 21, 22, 23, 24]]
    """
    if size < 1:
        raise ValueError("chunk size must be positive")
    batch: list[T] = []
    for value in values:
        batch.append(value)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


async def retry_on_lock(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
) -> T:
    """Run a database operation, retrying transient lock/connection errors.

    Only store-level hiccups (SQLite busy, dropped Postgres connections) are
    retried, with exponential backoff. Anything else propagates at once.

    Args:
        coro_func: Callable returning the coroutine to await, e.g. ``session.commit``
        max_retries: Maximum number of attempts
        base_delay: Delay in seconds before the second attempt (doubles afterwards)
    """
    last_exception = None
    for attempt in range(max_retries):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError) as e:
            if not any(msg in str(e).lower() for msg in _TRANSIENT_MESSAGES):
                raise
            last_exception = e
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
            await asyncio.sleep(delay)
    raise last_exception
