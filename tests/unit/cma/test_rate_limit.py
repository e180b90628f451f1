"""Tests for cma/rate_limit.py -- sliding-log limiters."""

from __future__ import annotations

import math
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from adoptify.cma.rate_limit import AsyncSlidingWindowLimiter, CallLog, SlidingWindowLimiter


class FakeClock:
    """Deterministic monotonic clock advanced only by sleeping."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)


@pytest.fixture
def clock():
    fake = FakeClock()
    fake_time = SimpleNamespace(monotonic=fake.monotonic, sleep=fake.sleep)
    with patch("adoptify.cma.rate_limit.time", fake_time):
        yield fake


class TestValidation:
    def test_zero_calls_rejected(self):
        with pytest.raises(ValueError, match="max_calls"):
            SlidingWindowLimiter(max_calls=0)

    def test_non_positive_window_rejected(self):
        with pytest.raises(ValueError, match="window_seconds"):
            AsyncSlidingWindowLimiter(window_seconds=0)

    def test_negative_jitter_rejected(self):
        with pytest.raises(ValueError, match="jitter_seconds"):
            SlidingWindowLimiter(jitter_seconds=-0.1)


class TestSlidingWindowLimiter:
    def test_calls_under_ceiling_do_not_wait(self, clock):
        limiter = SlidingWindowLimiter(max_calls=8, window_seconds=1.0, jitter_seconds=0.0)
        waits = [limiter.acquire() for _ in range(8)]
        assert waits == [0.0] * 8
        assert clock.sleeps == []

    def test_ninth_call_waits_for_oldest_to_leave_window(self, clock):
        limiter = SlidingWindowLimiter(max_calls=8, window_seconds=1.0, jitter_seconds=0.0)
        for _ in range(8):
            limiter.acquire()
        assert limiter.acquire() == pytest.approx(1.0)
        assert clock.now == pytest.approx(1.0)

    def test_twenty_calls_span_full_windows(self, clock):
        limiter = SlidingWindowLimiter(max_calls=8, window_seconds=1.0, jitter_seconds=0.0)
        admitted: list[float] = []
        for _ in range(20):
            limiter.acquire()
            admitted.append(clock.now)
        assert admitted[8] >= 1.0
        assert admitted[-1] >= math.ceil(20 / 8) - 1
        # Never more than 8 admissions inside any one-second window.
        for i, start in enumerate(admitted):
            inside = [t for t in admitted[i:] if t - start < 1.0]
            assert len(inside) <= 8

    def test_wait_is_remaining_time_of_oldest(self, clock):
        limiter = SlidingWindowLimiter(max_calls=2, window_seconds=1.0, jitter_seconds=0.0)
        limiter.acquire()
        clock.now = 0.4
        limiter.acquire()
        clock.now = 0.5
        assert limiter.acquire() == pytest.approx(0.5)

    def test_old_timestamps_are_pruned(self, clock):
        limiter = SlidingWindowLimiter(max_calls=2, window_seconds=1.0, jitter_seconds=0.0)
        limiter.acquire()
        limiter.acquire()
        clock.now = 5.0
        assert limiter.acquire() == 0.0
        assert len(limiter) == 1

    def test_jitter_is_added_to_wait(self, clock):
        limiter = SlidingWindowLimiter(max_calls=1, window_seconds=1.0, jitter_seconds=0.025)
        limiter.acquire()
        with patch("adoptify.cma.rate_limit.random.uniform", return_value=0.02) as uniform:
            waited = limiter.acquire()
        uniform.assert_called_with(0, 0.025)
        assert waited == pytest.approx(1.02)


class TestAsyncSlidingWindowLimiter:
    @pytest.mark.asyncio
    async def test_twenty_calls_take_two_windows(self, clock):
        limiter = AsyncSlidingWindowLimiter(max_calls=8, window_seconds=1.0, jitter_seconds=0.0)
        fake_asyncio = SimpleNamespace(sleep=clock.async_sleep)
        with patch("adoptify.cma.rate_limit.asyncio", fake_asyncio):
            for _ in range(20):
                await limiter.acquire()
        assert clock.now == pytest.approx(2.0)
        assert len(clock.sleeps) == 2

    @pytest.mark.asyncio
    async def test_under_ceiling_returns_zero(self, clock):
        limiter = AsyncSlidingWindowLimiter(max_calls=3)
        assert await limiter.acquire() == 0.0
        assert len(limiter) == 1


class TestSharedCallLog:
    @pytest.mark.asyncio
    async def test_sync_and_async_limiters_share_budget(self, clock):
        call_log = CallLog()
        sync_limiter = SlidingWindowLimiter(2, 1.0, 0.0, log=call_log)
        async_limiter = AsyncSlidingWindowLimiter(2, 1.0, 0.0, log=call_log)
        sync_limiter.acquire()
        sync_limiter.acquire()
        fake_asyncio = SimpleNamespace(sleep=clock.async_sleep)
        with patch("adoptify.cma.rate_limit.asyncio", fake_asyncio):
            assert await async_limiter.acquire() == pytest.approx(1.0)
        assert len(call_log) == 1
        assert len(sync_limiter) == len(async_limiter) == 1

    def test_default_logs_are_independent(self, clock):
        a = SlidingWindowLimiter(1, 1.0, 0.0)
        b = SlidingWindowLimiter(1, 1.0, 0.0)
        a.acquire()
        assert b.acquire() == 0.0
        assert clock.sleeps == []
