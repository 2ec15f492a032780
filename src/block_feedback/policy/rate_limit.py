"""
Per-user sliding-window rate limiting for review requests.

Each user may start at most max_reviews reviews within window_seconds
(10 per hour by default). Checking a request that is allowed records it.
State lives in process memory; run one worker or put a shared limiter in
front of the service.
"""

import time
from collections import deque
from collections.abc import Callable

from ..config import policy_config
from ..errors import ReviewError


class RateLimiter:
    def __init__(
        self,
        max_reviews: int | None = None,
        window_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_reviews = max_reviews if max_reviews is not None else policy_config.rate_limit.max_reviews
        self.window_seconds = (
            window_seconds if window_seconds is not None else policy_config.rate_limit.window_seconds
        )
        self.clock = clock
        self._hits: dict[str, deque[float]] = {}

    def _prune(self, user: str, now: float) -> deque[float]:
        hits = self._hits.setdefault(user, deque())
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        return hits

    def remaining(self, user: str) -> int:
        return max(0, self.max_reviews - len(self._prune(user, self.clock())))

    def check(self, user: str) -> None:
        now = self.clock()
        hits = self._prune(user, now)
        if len(hits) >= self.max_reviews:
            raise ReviewError(
                "rate_limit_exceeded",
                f"You have reached the maximum number of reviews per hour ({self.max_reviews}). "
                "Please try again later.",
                status=429,
            )
        hits.append(now)

