"""Fixed-window in-memory rate limiter."""

import time
from typing import Callable, Dict, Optional

from storyforge.app.core.logging import get_logger
from storyforge.app.middleware.rate_limit.models import RateLimitEntry

logger = get_logger(__name__)


class FixedWindowRateLimiter:
    """In-memory fixed-window request counter keyed by caller identifier.

    Suitable for single-process deployments only: the table lives in
    process memory and is lost on restart. All methods are synchronous and
    run to completion without awaiting, so on a single event loop no lock
    is needed. A threaded deployment would have to guard ``_entries``.

    Memory is bounded opportunistically: when more than ``max_entries``
    keys are tracked, the ``check`` call that notices it sweeps out every
    expired entry before continuing. The sweep is O(n) in tracked keys.
    """

    DEFAULT_MAX_ENTRIES = 500

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], float]] = None,
        count_rejected: bool = True,
        name: str = "default",
    ):
        """Initialize rate limiter.

        Args:
            window_seconds: Length of each fixed window
            max_entries: Tracked-key ceiling that triggers the expiry sweep
            clock: Monotonic time source in seconds (injectable for tests)
            count_rejected: Whether rejected requests still increment the
                count. True keeps a key that keeps retrying "hot" until the
                window ends.
            name: Limiter name used in log records
        """
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self.count_rejected = count_rejected
        self.name = name
        self._clock = clock or time.monotonic
        self._entries: Dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, limit: int, key: str) -> bool:
        """Record a request for ``key`` and report whether it is admitted.

        Args:
            limit: Allowed requests per window
            key: Caller identifier (user id, IP address or "anonymous")

        Returns:
            True if the request is within ``limit`` for the current window
        """
        now = self._clock()

        if len(self._entries) > self.max_entries:
            self._sweep(now)

        entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            self._entries[key] = RateLimitEntry(
                count=1, window_reset_at=now + self.window_seconds
            )
            return True

        if entry.count >= limit and not self.count_rejected:
            return False

        entry.count += 1
        return entry.count <= limit

    def reset(self, key: str) -> None:
        """Forget ``key`` so its next request starts a fresh window."""
        self._entries.pop(key, None)

    def get_remaining(self, key: str) -> int:
        """Return the observed request count for ``key`` in its active window.

        Despite the name this is the number of requests already seen, not
        the number left. Absent or expired keys report 0.
        """
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return 0
        return entry.count

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        logger.debug(
            f"Rate limiter '{self.name}' swept {len(expired)} expired entries, "
            f"{len(self._entries)} remain"
        )
