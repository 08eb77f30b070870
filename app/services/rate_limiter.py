"""In-memory fixed-window request counter keyed by client address."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime

from app.core.clock import Clock, utc_now


@dataclass
class _Counter:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one counted request, with the values for the X-RateLimit-* headers."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> dict[str, str]:
        reset = datetime.fromtimestamp(self.reset_at, UTC)
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset.isoformat().replace("+00:00", "Z"),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """
    Count requests per client in windows of ``window_seconds``.

    State is process-local and lost on restart; with several workers each one
    enforces its own quota.
    """

    def __init__(self, window_seconds: float, max_requests: int, clock: Clock = utc_now) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._counters: dict[str, _Counter] = {}

    def __len__(self) -> int:
        return len(self._counters)

    def _evict(self, now: float) -> None:
        window_start = now - self.window_seconds
        stale = [key for key, c in self._counters.items() if c.reset_at < window_start]
        for key in stale:
            del self._counters[key]

    def hit(self, client_id: str) -> RateLimitDecision:
        """Record a request from client_id; refuse it once the window's quota is used."""
        now = self._clock().timestamp()
        self._evict(now)

        counter = self._counters.get(client_id)
        if counter is None:
            counter = _Counter(count=0, reset_at=now + self.window_seconds)
            self._counters[client_id] = counter
        if counter.reset_at < now:
            counter.count = 0
            counter.reset_at = now + self.window_seconds

        if counter.count >= self.max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_at=counter.reset_at,
                retry_after=max(0, math.ceil(counter.reset_at - now)),
            )

        counter.count += 1
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - counter.count,
            reset_at=counter.reset_at,
            retry_after=0,
        )

    def reset(self) -> None:
        self._counters.clear()
