"""
Testes do RateLimiter / AdaptiveRateLimiter.

Os intervalos são pequenos (dezenas de ms) para manter a suíte rápida;
as asserções usam uma folga mínima para ruído de ponto flutuante.
"""

import asyncio
import time

import pytest

from fightgraph.services.discovery_manager import AdaptiveRateLimiter, RateLimiter

EPSILON = 1e-6


def _gaps(timestamps):
    ordered = sorted(timestamps)
    return [b - a for a, b in zip(ordered, ordered[1:])]


class TestRateLimiter:
    def test_first_slot_is_immediate(self):
        limiter = RateLimiter(min_interval_ms=500)

        start = time.monotonic()
        asyncio.run(limiter.wait_for_slot())

        assert time.monotonic() - start < 0.1

    def test_concurrent_callers_are_spaced(self):
        limiter = RateLimiter(min_interval_ms=50)

        async def scenario():
            return await asyncio.gather(*(limiter.wait_for_slot() for _ in range(4)))

        grants = asyncio.run(scenario())

        assert len(grants) == 4
        for gap in _gaps(grants):
            assert gap >= 0.05 - EPSILON

    def test_callers_are_served_in_arrival_order(self):
        limiter = RateLimiter(min_interval_ms=20)
        order = []

        async def caller(index):
            await limiter.wait_for_slot()
            order.append(index)

        async def scenario():
            await asyncio.gather(*(caller(i) for i in range(5)))

        asyncio.run(scenario())

        assert order == [0, 1, 2, 3, 4]

    def test_execute_runs_sync_and_async_operations(self):
        limiter = RateLimiter(min_interval_ms=0)

        async def fetch():
            return "async-result"

        async def scenario():
            sync_value = await limiter.execute(lambda: 42)
            async_value = await limiter.execute(fetch)
            return sync_value, async_value

        assert asyncio.run(scenario()) == (42, "async-result")
        assert limiter.get_status()["metrics"]["total_acquired"] == 2

    def test_execute_propagates_operation_errors(self):
        limiter = RateLimiter(min_interval_ms=0)

        async def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(limiter.execute(boom))

    def test_queue_is_empty_after_all_slots_granted(self):
        limiter = RateLimiter(min_interval_ms=10)

        async def scenario():
            await asyncio.gather(*(limiter.wait_for_slot() for _ in range(3)))

        asyncio.run(scenario())

        assert limiter.queue_length == 0

    def test_negative_interval_is_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(min_interval_ms=-1)


class TestAdaptiveRateLimiter:
    def test_defaults_come_from_config(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=100)

        assert limiter.burst_limit == 5
        assert limiter.burst_window_ms == 10000
        assert limiter.failure_threshold == 3
        assert limiter.success_threshold == 10

    def test_burst_quota_waits_for_window_rollover(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=0, burst_limit=2, burst_window_ms=100)

        async def scenario():
            return [await limiter.wait_for_slot() for _ in range(3)]

        first, second, third = asyncio.run(scenario())

        assert second - first < 0.05
        assert third - first >= 0.1 - 0.005

    def test_repeated_failures_double_the_interval(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=100, burst_limit=10)

        limiter.record_failure()
        limiter.record_failure()
        assert limiter.interval_ms == 100
        assert not limiter.degraded

        limiter.record_failure()
        assert limiter.interval_ms == 200
        assert limiter.degraded

        limiter.record_failure()
        assert limiter.interval_ms == 400

    def test_success_clears_degraded_but_keeps_interval(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=100, burst_limit=10)
        for _ in range(3):
            limiter.record_failure()

        limiter.record_success()

        assert not limiter.degraded
        assert limiter.interval_ms == 200

        limiter.reset_interval()
        assert limiter.interval_ms == 100

    def test_enough_successes_prevent_backoff(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=100, burst_limit=10)
        for _ in range(10):
            limiter.record_success()

        for _ in range(5):
            limiter.record_failure()

        assert limiter.interval_ms == 100
        assert not limiter.degraded

    def test_reset_clears_counters_and_window(self):
        limiter = AdaptiveRateLimiter(min_interval_ms=0, burst_limit=3)
        asyncio.run(limiter.wait_for_slot())
        for _ in range(3):
            limiter.record_failure()

        limiter.reset()

        stats = limiter.get_adaptive_stats()
        assert stats["failure_count"] == 0
        assert stats["success_count"] == 0
        assert stats["adaptive_mode"] is False
        assert limiter.get_status()["burst"]["used_in_window"] == 0

    def test_invalid_burst_limit_is_rejected(self):
        with pytest.raises(ValueError):
            AdaptiveRateLimiter(min_interval_ms=0, burst_limit=0)
