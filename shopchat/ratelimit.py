"""Fixed-window request admission per caller key.

Two backends share the same decision logic: an in-process map guarded by a
lock, and a Redis counter for deployments running several instances.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateBucket:
    count: int
    reset_at: int


@dataclass(frozen=True)
class Admission:
    allowed: bool
    limit: int
    count: int
    remaining: int
    reset_at: int
    retry_after: Optional[int] = None

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at / 1000)),
        }
        if not self.allowed and self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers


def decide(count: int, reset_at: int, max_requests: int, now: int) -> Admission:
    remaining = max(0, max_requests - count)
    if count > max_requests:
        retry_after = max(0, math.ceil((reset_at - now) / 1000))
        return Admission(False, max_requests, count, remaining, reset_at, retry_after)
    return Admission(True, max_requests, count, remaining, reset_at)


class RateLimiter(Protocol):
    def admit(self, key: str, now: Optional[int] = None) -> Admission: ...


class InMemoryRateLimiter:
    def __init__(
        self,
        window_ms: int | None = None,
        max_requests: int | None = None,
        max_keys: int | None = None,
    ) -> None:
        self.window_ms = window_ms or settings.rate_limit_window_ms
        self.max_requests = max_requests or settings.rate_limit_max
        self.max_keys = max_keys or settings.rate_limit_max_keys
        self._buckets: Dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._buckets)

    def _sweep(self, now: int) -> None:
        stale = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
        for key in stale:
            del self._buckets[key]
        logger.debug("rate limiter swept %s stale buckets", len(stale))

    def admit(self, key: str, now: Optional[int] = None) -> Admission:
        now = now_ms() if now is None else now
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or bucket.reset_at <= now:
                if bucket is None and len(self._buckets) >= self.max_keys:
                    self._sweep(now)
                bucket = RateBucket(count=0, reset_at=now + self.window_ms)
                self._buckets[key] = bucket
            bucket.count += 1
            count, reset_at = bucket.count, bucket.reset_at
        return decide(count, reset_at, self.max_requests, now)


# INCR, then start the window on the first hit; PTTL tells when it resets.
_FIXED_WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
  redis.call('PEXPIRE', KEYS[1], ARGV[1])
  ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisRateLimiter:
    def __init__(
        self,
        client: redis.Redis,
        window_ms: int | None = None,
        max_requests: int | None = None,
        prefix: str = "ratelimit:",
    ) -> None:
        self.window_ms = window_ms or settings.rate_limit_window_ms
        self.max_requests = max_requests or settings.rate_limit_max
        self.prefix = prefix
        self._script = client.register_script(_FIXED_WINDOW_SCRIPT)

    def admit(self, key: str, now: Optional[int] = None) -> Admission:
        now = now_ms() if now is None else now
        try:
            count, ttl = self._script(keys=[f"{self.prefix}{key}"], args=[self.window_ms])
        except redis.RedisError as exc:
            logger.warning("Redis rate limit failed for %s, admitting: %s", key, exc)
            return Admission(True, self.max_requests, 0, self.max_requests, now + self.window_ms)
        ttl = int(ttl)
        reset_at = now + (ttl if ttl > 0 else self.window_ms)
        return decide(int(count), reset_at, self.max_requests, now)


_limiter: RateLimiter | None = None
_limiter_lock = threading.Lock()


def _build_rate_limiter() -> RateLimiter:
    if settings.rate_limit_backend == "redis":
        try:
            client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
            client.ping()
            logger.info("Using Redis rate limiter at %s:%s", settings.redis_host, settings.redis_port)
            return RedisRateLimiter(client)
        except redis.RedisError:
            logger.warning("Redis not available, using in-memory rate limiter")
    return InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is not None:
        return _limiter
    with _limiter_lock:
        if _limiter is None:
            _limiter = _build_rate_limiter()
    return _limiter
