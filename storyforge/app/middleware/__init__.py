"""Middleware package for StoryForge."""

from storyforge.app.middleware.auth import SupabaseUser, get_optional_user, require_user
from storyforge.app.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiterRegistry,
    enforce_rate_limit,
    get_rate_limit_key,
    get_rate_limiters,
)
from storyforge.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "SupabaseUser",
    "get_optional_user",
    "require_user",
    "FixedWindowRateLimiter",
    "RateLimiterRegistry",
    "enforce_rate_limit",
    "get_rate_limit_key",
    "get_rate_limiters",
    "RequestIdMiddleware",
    "get_request_id",
]
