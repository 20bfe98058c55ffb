# tests/test_rate_limit.py
import pytest

from src.coinbase.errors import RateLimitError
from src.coinbase.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_blocks_after_budget_and_resets_after_window():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=clock)
    assert [limiter.acquire("a") for _ in range(3)] == [2, 1, 0]
    assert limiter.remaining("a") == 0

    clock.now += 20
    with pytest.raises(RateLimitError) as excinfo:
        limiter.acquire("a")
    assert excinfo.value.retry_after == 40

    clock.now += 41
    assert limiter.remaining("a") == 3
    assert limiter.acquire("a") == 2


def test_keys_are_independent():
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.acquire("alice")
    with pytest.raises(RateLimitError):
        limiter.acquire("alice")
    assert limiter.acquire("bob") == 0


def test_reset_and_message():
    limiter = RateLimiter(max_requests=1, window_seconds=10, clock=FakeClock(), message="slow down")
    limiter.acquire()
    with pytest.raises(RateLimitError, match="slow down"):
        limiter.acquire()
    limiter.reset()
    assert limiter.remaining() == 1


@pytest.mark.parametrize("max_requests,window", [(0, 60), (5, 0), (-1, -1)])
def test_rejects_bad_limits(max_requests, window):
    with pytest.raises(ValueError):
        RateLimiter(max_requests=max_requests, window_seconds=window)
