"""Rate limiting for the generation endpoints.

Three independent fixed-window limiters are built once per application
from settings and handed to route handlers through the
``get_rate_limiters`` dependency. Routes call ``enforce_rate_limit`` with
their own per-call limit.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request

from storyforge.app.core.config import Settings
from storyforge.app.core.constants import ANONYMOUS_USER_KEY
from storyforge.app.core.logging import get_log_context, get_logger
from storyforge.app.exceptions import RateLimitExceededError
from storyforge.app.middleware.rate_limit.limiter import FixedWindowRateLimiter
from storyforge.app.middleware.rate_limit.models import RateLimitEntry

logger = get_logger(__name__)

__all__ = [
    "RateLimitEntry",
    "FixedWindowRateLimiter",
    "RateLimiterRegistry",
    "enforce_rate_limit",
    "get_rate_limit_key",
    "get_rate_limiters",
]


@dataclass
class RateLimiterRegistry:
    """The limiter instances shared by all handlers of one application.

    Attributes:
        api: General API limiter (title generation)
        generation: Story, chapter and outline generation
        auth: Authentication limiter. Configured but not used by any route.
    """
    api: FixedWindowRateLimiter
    generation: FixedWindowRateLimiter
    auth: FixedWindowRateLimiter

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Optional[Callable[[], float]] = None,
    ) -> "RateLimiterRegistry":
        def build(name: str, window_seconds: int) -> FixedWindowRateLimiter:
            return FixedWindowRateLimiter(
                window_seconds=window_seconds,
                max_entries=settings.rate_limit_max_entries,
                clock=clock,
                count_rejected=settings.rate_limit_count_rejected,
                name=name,
            )

        return cls(
            api=build("api", settings.api_rate_limit_window_seconds),
            generation=build("generation", settings.generation_rate_limit_window_seconds),
            auth=build("auth", settings.auth_rate_limit_window_seconds),
        )

    def sizes(self) -> Dict[str, int]:
        return {
            "api": len(self.api),
            "generation": len(self.generation),
            "auth": len(self.auth),
        }


def get_rate_limiters(request: Request) -> RateLimiterRegistry:
    """FastAPI dependency returning the application's limiter registry."""
    return request.app.state.rate_limiters


def get_rate_limit_key(request: Request, user_id: Optional[str] = None) -> str:
    """Identify the caller for rate limiting.

    Uses the signed-in user id when present, then the first address in
    X-Forwarded-For, then a shared anonymous bucket.
    """
    if user_id:
        return user_id
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip
    return ANONYMOUS_USER_KEY


def enforce_rate_limit(
    limiter: FixedWindowRateLimiter,
    limit: int,
    key: str,
    message: str = "Too many generation requests. Please wait a moment and try again.",
) -> None:
    """Check ``key`` against ``limiter`` and raise when it is over ``limit``.

    Raises:
        RateLimitExceededError: If the limiter rejects the request
    """
    if limiter.check(limit, key):
        return
    logger.warning(
        f"Rate limit exceeded on '{limiter.name}' limiter",
        extra=get_log_context(
            user_id=key,
            limit=limit,
            observed=limiter.get_remaining(key),
        ),
    )
    raise RateLimitExceededError(message)
