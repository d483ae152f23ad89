import pytest

from ..core.errors import RateLimitExceeded
from ..core.rate_limit import PURGE_INTERVAL_SECONDS, RateLimiter


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_within_window() -> None:
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=Clock())
    for _ in range(3):
        limiter.hit("alice")

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit("alice")
    assert excinfo.value.retry_after == 60


def test_limits_are_per_identifier() -> None:
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=Clock())
    limiter.hit("alice")
    limiter.hit("bob")

    with pytest.raises(RateLimitExceeded):
        limiter.hit("alice")


def test_window_resets_after_expiry() -> None:
    clock = Clock()
    limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.hit("alice")

    clock.now = 9.2
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit("alice")
    assert excinfo.value.retry_after == 1

    clock.now = 10
    limiter.hit("alice")


def test_expired_windows_are_purged() -> None:
    clock = Clock()
    limiter = RateLimiter(max_requests=5, window_seconds=1, clock=clock)
    limiter.hit("alice")
    limiter.hit("bob")
    assert len(limiter) == 2

    clock.now = PURGE_INTERVAL_SECONDS + 1
    limiter.hit("carol")
    assert len(limiter) == 1


def test_reset_clears_all_counters() -> None:
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=Clock())
    limiter.hit("alice")
    limiter.reset()

    limiter.hit("alice")
