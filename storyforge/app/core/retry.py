"""Exponential-backoff retries for database reads.

Neon closes idle connections and can time out while a suspended compute
wakes up, so read queries are retried on connection-level errors. Model
calls and writes are never retried here.

A failed query leaves its session's transaction invalid, so the session
passed to the decorated function is rolled back before the next attempt.
Uncommitted work in that session is lost with the failed transaction.
"""

import asyncio
import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.core.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

CONNECTION_ERRORS: Tuple[Type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    ConnectionError,
    TimeoutError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry and how long to wait in between.

    ``max_retries`` counts retries after the first attempt, so a call runs
    at most ``max_retries + 1`` times. The wait before retry ``n`` (0-based)
    is ``base_delay * exponential_base ** n``, capped at ``max_delay``.
    """

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_exceptions: Tuple[Type[BaseException], ...] = CONNECTION_ERRORS

    def calculate_delay(self, attempt: int) -> float:
        return min(self.base_delay * self.exponential_base ** attempt, self.max_delay)

    def delays(self) -> Iterator[float]:
        """The wait before each retry, in order."""
        return (self.calculate_delay(n) for n in range(self.max_retries))

    def is_retryable(self, exc: BaseException) -> bool:
        # An error that invalidated its connection will get a fresh one
        if isinstance(exc, DBAPIError) and exc.connection_invalidated:
            return True
        return isinstance(exc, self.retryable_exceptions)


DB_RETRY_POLICY = RetryPolicy()


def _session_argument(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Optional[AsyncSession]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def with_retry(policy: Optional[RetryPolicy] = None) -> Callable[[F], F]:
    """Retry an async function according to ``policy``.

    Non-retryable errors propagate at once. Once the retries are used up,
    the last retryable error propagates.

    Example:
        >>> @with_retry(DB_RETRY_POLICY)
        ... async def get_story_by_id(session, story_id):
        ...     return await session.get(Story, story_id)
    """
    retry_policy = policy or RetryPolicy()

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delays = retry_policy.delays()
            retry = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not retry_policy.is_retryable(e):
                        raise
                    delay = next(delays, None)
                    if delay is None:
                        logger.warning(
                            f"{func.__name__} still failing after {retry_policy.max_retries} "
                            f"retries: {type(e).__name__}: {e}"
                        )
                        raise
                    retry += 1
                    logger.warning(
                        f"Retry {retry}/{retry_policy.max_retries} for {func.__name__} "
                        f"after {type(e).__name__}; waiting {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    session = _session_argument(args, kwargs)
                    if session is not None:
                        await session.rollback()

        return wrapper  # type: ignore[return-value]

    return decorator
