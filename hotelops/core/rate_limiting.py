# --- File: hotelops/core/rate_limiting.py ---
"""
Sliding-window rate limiting.

Keys are plain strings: `qr_validate:<qr_code_id>` for guest session
validation and `shorten:<tenant_id>` for short-link creation. The memory
backend serves a single worker and tests; the Redis backend shares one
window across workers.
"""

import threading
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Deque, Dict

import redis

from hotelops.config.settings import settings
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0

    @classmethod
    def granted(cls, limit: int, used: int) -> "RateLimitResult":
        return cls(allowed=True, limit=limit, remaining=max(limit - used, 0))

    @classmethod
    def denied(cls, limit: int, retry_after: int) -> "RateLimitResult":
        return cls(allowed=False, limit=limit, remaining=0, retry_after=max(retry_after, 1))


class SlidingWindowLimiter:
    """Counts hits per key over the trailing `period` seconds."""

    def check_limit(self, key: str, limit: int, period: int) -> RateLimitResult:
        """Record a hit if the key is under `limit`; a denied hit is not recorded."""
        raise NotImplementedError

    def reset(self, key: str) -> None:
        raise NotImplementedError


class MemoryRateLimiter(SlidingWindowLimiter):
    """
    Per-process windows. Every `sweep_every` checks, keys whose window has
    emptied are dropped.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 256):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._expires: Dict[str, float] = {}
        self._sweep_every = sweep_every
        self._checks = 0
        self._lock = threading.Lock()

    def check_limit(self, key: str, limit: int, period: int) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._checks += 1
            if self._checks % self._sweep_every == 0:
                self._sweep(now)

            hits = self._hits[key]
            while hits and hits[0] <= now - period:
                hits.popleft()
            if len(hits) >= limit:
                return RateLimitResult.denied(limit, int(hits[0] + period - now))
            hits.append(now)
            self._expires[key] = now + period
            return RateLimitResult.granted(limit, len(hits))

    def _sweep(self, now: float) -> None:
        expired = [key for key, expires in self._expires.items() if expires <= now]
        for key in expired:
            self._hits.pop(key, None)
            del self._expires[key]
        if expired:
            logger.debug(f"Dropped {len(expired)} idle rate limit keys")

    def tracked_keys(self) -> int:
        return len(self._hits)

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)
            self._expires.pop(key, None)


class RedisRateLimiter(SlidingWindowLimiter):
    """One sorted set per key, scored by hit time."""

    def __init__(self, client: redis.Redis, prefix: str = "hotelops:rate"):
        self.redis = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def check_limit(self, key: str, limit: int, period: int) -> RateLimitResult:
        window_key = self._key(key)
        now = time.time()
        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(window_key, 0, now - period)
            pipe.zcard(window_key)
            _, used = pipe.execute()

            if used >= limit:
                oldest = self.redis.zrange(window_key, 0, 0, withscores=True)
                retry_after = int(oldest[0][1] + period - now) + 1 if oldest else period
                return RateLimitResult.denied(limit, retry_after)

            pipe = self.redis.pipeline()
            pipe.zadd(window_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.expire(window_key, period)
            pipe.execute()
            return RateLimitResult.granted(limit, used + 1)
        except redis.RedisError as e:
            # Fail open: an unreachable Redis must not lock guests out
            logger.error(f"Rate limit check failed, allowing request: {e}", extra={"key": key})
            return RateLimitResult.granted(limit, 0)

    def reset(self, key: str) -> None:
        self.redis.delete(self._key(key))


@lru_cache()
def get_rate_limiter() -> SlidingWindowLimiter:
    """Process-wide limiter for the configured RATE_LIMIT_BACKEND."""
    if settings.RATE_LIMIT_BACKEND == "redis":
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(redis.Redis.from_url(settings.REDIS_URL))
    return MemoryRateLimiter()


def qr_rate_limit_key(qr_code_id: str) -> str:
    return f"qr_validate:{qr_code_id}"


def shorten_rate_limit_key(tenant_id: str) -> str:
    return f"shorten:{tenant_id}"


__all__ = [
    "RateLimitResult",
    "SlidingWindowLimiter",
    "MemoryRateLimiter",
    "RedisRateLimiter",
    "get_rate_limiter",
    "qr_rate_limit_key",
    "shorten_rate_limit_key",
]
