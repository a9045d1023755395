"""
Per-mobile-number rate limiting for OTP issuance.

Sliding window: at most `limit` accepted requests per `window_seconds`.
Redis-backed when REDIS_URL is configured, in-memory otherwise. Both
backends do check-and-increment as one atomic step so concurrent requests
for the same number cannot overshoot the quota.
"""
import logging
import time
import uuid
from collections import defaultdict
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

import redis

from ...core.config import settings
from ...utils.phone import get_phone_last4

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    """
    Simple in-memory sliding-window limiter.

    Thread-safe. Only counts requests that were allowed.
    """

    def __init__(self, time_func: Callable[[], float] = time.time):
        self._store: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()
        self._time = time_func

    def _cleanup(self, key: str, window_seconds: int, now: float):
        cutoff = now - window_seconds
        self._store[key] = [ts for ts in self._store[key] if ts > cutoff]
        if not self._store[key]:
            del self._store[key]

    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
        """
        Check if key is within rate limit and record the request if it is.

        Returns: (allowed, remaining_count)
        """
        with self._lock:
            now = self._time()
            self._cleanup(key, window_seconds, now)
            current_count = len(self._store.get(key, []))

            if current_count >= limit:
                return False, 0

            self._store[key].append(now)
            return True, limit - current_count - 1

    def reset(self):
        with self._lock:
            self._store.clear()


class OTPRateLimiter:
    """
    Rate limiter for generateOTP, keyed by mobile number.

    Uses Redis if a client is given, falls back to memory if Redis errors.
    """

    KEY_PREFIX = "otp:rate:phone:"

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        redis_client: Optional["redis.Redis"] = None,
        time_func: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._redis = redis_client
        self._memory = InMemoryRateLimiter(time_func=time_func)
        self._time = time_func

    def _key(self, mobile_number: str) -> str:
        return f"{self.KEY_PREFIX}{mobile_number}"

    def hit(self, mobile_number: str) -> Tuple[bool, int]:
        """
        Count one issuance request against the number's quota.

        Returns:
            (allowed, remaining_count)
        """
        key = self._key(mobile_number)
        if self._redis is not None:
            try:
                return self._hit_redis(key)
            except redis.RedisError as e:
                logger.warning(f"Redis rate limit check failed, using memory: {e}")

        allowed, remaining = self._memory.check_and_increment(key, self.limit, self.window_seconds)
        if not allowed:
            logger.info(f"[OTP] Rate limit hit for ...{get_phone_last4(mobile_number)}")
        return allowed, remaining

    def _hit_redis(self, key: str) -> Tuple[bool, int]:
        """Sliding window over a sorted set; add-then-count runs inside MULTI/EXEC."""
        now = self._time()
        member = f"{now}:{uuid.uuid4().hex}"

        pipe = self._redis.pipeline(transaction=True)
        pipe.zremrangebyscore(key, 0, now - self.window_seconds)
        pipe.zadd(key, {member: now})
        pipe.zcard(key)
        pipe.expire(key, self.window_seconds + 1)
        _, _, count, _ = pipe.execute()

        if count > self.limit:
            # Over quota: withdraw our entry so rejected requests do not extend the window
            self._redis.zrem(key, member)
            return False, 0

        return True, self.limit - count

    def reset(self):
        """Forget all in-memory counters (tests, admin tooling)."""
        self._memory.reset()


# Singleton instance
_rate_limiter: Optional[OTPRateLimiter] = None


def get_rate_limiter() -> OTPRateLimiter:
    """Get or create the rate limiter singleton from settings."""
    global _rate_limiter
    if _rate_limiter is None:
        redis_client = None
        if settings.REDIS_URL:
            try:
                redis_client = redis.from_url(
                    settings.REDIS_URL, decode_responses=True, socket_connect_timeout=3, socket_timeout=3
                )
                redis_client.ping()
                logger.info("OTP rate limiter initialized with Redis")
            except redis.RedisError as e:
                logger.warning(f"Failed to initialize Redis for rate limiting, using in-memory store: {e}")
                redis_client = None
        _rate_limiter = OTPRateLimiter(
            limit=settings.OTP_RATE_LIMIT_MAX,
            window_seconds=settings.OTP_RATE_LIMIT_WINDOW,
            redis_client=redis_client,
        )
    return _rate_limiter


def reset_rate_limiter():
    """Drop the singleton so the next call re-reads settings."""
    global _rate_limiter
    _rate_limiter = None
