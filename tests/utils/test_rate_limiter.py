"""Tests for the rate limiter implementation."""

import threading

import pytest

from avalanche_report.utils.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

@pytest.fixture
def clock():
    return FakeClock()

def test_rate_limiter_init():
    """Test RateLimiter initialization."""
    limiter = RateLimiter(max_calls=10, time_window=60)
    assert limiter.max_calls == 10
    assert limiter.time_window == 60
    assert len(limiter.calls) == 0

def test_rejects_non_positive_limit():
    with pytest.raises(ValueError):
        RateLimiter(max_calls=0, time_window=60)

def test_get_sleep_time_under_limit(clock):
    """Test sleep time when under the rate limit."""
    limiter = RateLimiter(max_calls=2, time_window=1, clock=clock)

    assert limiter.get_sleep_time() == 0
    limiter.add_call()
    assert limiter.get_sleep_time() == 0

def test_get_sleep_time_at_limit(clock):
    """Test sleep time when at the rate limit."""
    limiter = RateLimiter(max_calls=2, time_window=1, clock=clock)
    limiter.add_call()
    clock.now += 0.25
    limiter.add_call()

    assert limiter.get_sleep_time() == pytest.approx(0.75)

def test_window_expiry(clock):
    """Test that calls expire after the time window."""
    limiter = RateLimiter(max_calls=2, time_window=0.1, clock=clock)
    limiter.add_call()
    limiter.add_call()

    clock.now += 0.2

    assert limiter.get_sleep_time() == 0
    assert len(limiter.calls) == 0

def test_acquire_waits_for_the_oldest_call(clock):
    limiter = RateLimiter(max_calls=2, time_window=60, clock=clock, sleep=clock.sleep)

    limiter.acquire()
    limiter.acquire()
    assert clock.sleeps == []

    limiter.acquire()
    assert clock.sleeps == [pytest.approx(60)]
    assert len(limiter.calls) == 2

def test_high_volume(clock):
    """Test rate limiter under high volume."""
    limiter = RateLimiter(max_calls=100, time_window=1, clock=clock)

    for _ in range(50):
        limiter.add_call()
    assert limiter.get_sleep_time() == 0

    for _ in range(50):
        limiter.add_call()
    assert limiter.get_sleep_time() > 0

def test_acquire_gives_up_when_stopped(clock):
    limiter = RateLimiter(max_calls=1, time_window=60, clock=clock, sleep=clock.sleep)
    stop = threading.Event()
    stop.set()

    assert limiter.acquire(stop) is True
    assert limiter.acquire(stop) is False
    assert len(limiter.calls) == 1
    assert clock.sleeps == []
