"""
Tests for the per-number OTP issuance limiter
"""
from unittest.mock import MagicMock

import redis

from app.services.auth.rate_limit import InMemoryRateLimiter, OTPRateLimiter


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_in_memory_sliding_window():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(time_func=clock)

    assert limiter.check_and_increment("k", 3, 60) == (True, 2)
    assert limiter.check_and_increment("k", 3, 60) == (True, 1)
    assert limiter.check_and_increment("k", 3, 60) == (True, 0)
    assert limiter.check_and_increment("k", 3, 60) == (False, 0)

    clock.now += 60.5
    assert limiter.check_and_increment("k", 3, 60) == (True, 2)


def test_rejections_do_not_extend_window():
    clock = FakeClock()
    limiter = OTPRateLimiter(limit=1, window_seconds=60, time_func=clock)

    assert limiter.hit("+15551234567")[0] is True
    clock.now += 30
    assert limiter.hit("+15551234567")[0] is False
    clock.now += 31
    assert limiter.hit("+15551234567")[0] is True


def test_limits_are_per_number():
    limiter = OTPRateLimiter(limit=1, window_seconds=60, time_func=FakeClock())
    assert limiter.hit("+15551234567")[0] is True
    assert limiter.hit("+15557654321")[0] is True
    assert limiter.hit("+15551234567")[0] is False


def test_reset_clears_counters():
    limiter = OTPRateLimiter(limit=1, window_seconds=60, time_func=FakeClock())
    limiter.hit("+15551234567")
    limiter.reset()
    assert limiter.hit("+15551234567")[0] is True


def _redis_with_count(count):
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.return_value = [0, 1, count, True]
    return client, pipe


def test_redis_backend_allows_under_limit():
    client, pipe = _redis_with_count(2)
    limiter = OTPRateLimiter(limit=3, window_seconds=60, redis_client=client, time_func=FakeClock())

    assert limiter.hit("+15551234567") == (True, 1)
    client.pipeline.assert_called_once_with(transaction=True)
    pipe.zadd.assert_called_once()
    client.zrem.assert_not_called()


def test_redis_backend_withdraws_rejected_entry():
    client, pipe = _redis_with_count(4)
    limiter = OTPRateLimiter(limit=3, window_seconds=60, redis_client=client, time_func=FakeClock())

    assert limiter.hit("+15551234567") == (False, 0)
    key, member = client.zrem.call_args[0]
    assert key == "otp:rate:phone:+15551234567"
    assert member == list(pipe.zadd.call_args[0][1].keys())[0]


def test_redis_failure_falls_back_to_memory():
    client = MagicMock()
    client.pipeline.side_effect = redis.ConnectionError("down")
    limiter = OTPRateLimiter(limit=1, window_seconds=60, redis_client=client, time_func=FakeClock())

    assert limiter.hit("+15551234567")[0] is True
    assert limiter.hit("+15551234567")[0] is False
