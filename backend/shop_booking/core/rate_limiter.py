"""
In-memory fixed-window rate limiting for the /api routes
"""

import logging
import time
from threading import Lock
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL = 60  # Drop expired windows at most once a minute


def client_ip(request: Request) -> str:
    """Client address, honouring the first X-Forwarded-For hop (trust proxy)"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """Counts requests per key in fixed windows.

    State lives in this process only; several workers each keep their own
    counters.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        # {key: {'count': int, 'reset_time': float}}
        self._windows: Dict[str, Dict[str, float]] = {}
        self._lock = Lock()
        self._last_cleanup = 0.0

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL:
            return
        expired = [k for k, v in self._windows.items() if now >= v["reset_time"]]
        for k in expired:
            del self._windows[k]
        if expired:
            logger.debug(f"🧹 Cleaned up {len(expired)} expired rate limit entries")
        self._last_cleanup = now

    def check(self, key: str) -> Tuple[bool, int, int]:
        """Count one request for ``key``.

        Returns:
            Tuple of (is_allowed, current_count, seconds_until_reset)
        """
        now = self.clock()
        with self._lock:
            self._cleanup(now)
            entry = self._windows.get(key)
            if entry is None or now >= entry["reset_time"]:
                entry = {"count": 0, "reset_time": now + self.window_seconds}
                self._windows[key] = entry

            is_allowed = entry["count"] < self.limit
            if is_allowed:
                entry["count"] += 1

            ttl = max(0, int(entry["reset_time"] - now))
            return is_allowed, int(entry["count"]), ttl


async def rate_limit_dependency(request: Request) -> None:
    """FastAPI dependency applying the process-wide /api limit per client IP"""
    limiter: RateLimiter = request.app.state.context.rate_limiter
    key = f"api:{client_ip(request)}"
    is_allowed, current_count, ttl = limiter.check(key)

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limiter.limit} requests used")
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {limiter.limit} requests per {limiter.window_seconds} seconds.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limiter.limit - current_count
