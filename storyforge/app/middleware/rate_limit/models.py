"""Rate limiting data models.

This module contains dataclasses for rate limit state.
"""

from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Request count for one key within its current fixed window."""
    count: int
    window_reset_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.window_reset_at
