"""Tests for cache staleness and refresh."""

import asyncio

from news_reader.cache import CacheController
from news_reader.config import CacheConfig
from news_reader.core.types import AggregationResult

from helpers import FakeClock


class CountingAggregate:
    def __init__(self, clock: FakeClock, delay: float = 0.0):
        self.clock = clock
        self.delay = delay
        self.calls = 0

    async def __call__(self) -> AggregationResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return AggregationResult(articles=[], fetched_at=self.clock())


def test_first_read_refreshes_then_serves_cache():
    clock = FakeClock()
    aggregate = CountingAggregate(clock)
    cache = CacheController(CacheConfig(), aggregate, clock)

    assert cache.is_stale()
    assert cache.last_fetch is None

    start = clock.now

    async def run():
        await cache.get()
        clock.advance(minutes=10)
        await cache.get()

    asyncio.run(run())
    assert aggregate.calls == 1
    assert cache.last_fetch == start
    assert not cache.is_stale()


def test_read_after_max_age_refreshes_exactly_once():
    clock = FakeClock()
    aggregate = CountingAggregate(clock)
    cache = CacheController(CacheConfig(max_age_minutes=15), aggregate, clock)
    asyncio.run(cache.get())
    first_fetch = cache.last_fetch

    clock.advance(minutes=16)
    assert cache.is_stale()

    async def run():
        await cache.get()
        await cache.get()

    asyncio.run(run())
    assert aggregate.calls == 2
    assert cache.last_fetch == clock.now
    assert cache.last_fetch > first_fetch


def test_concurrent_stale_reads_share_one_refresh():
    clock = FakeClock()
    aggregate = CountingAggregate(clock, delay=0.01)
    cache = CacheController(CacheConfig(), aggregate, clock)

    async def run():
        return await asyncio.gather(*(cache.get() for _ in range(5)))

    results = asyncio.run(run())
    assert aggregate.calls == 1
    assert all(r is results[0] for r in results)


def test_forced_refresh_ignores_age():
    clock = FakeClock()
    aggregate = CountingAggregate(clock)
    cache = CacheController(CacheConfig(), aggregate, clock)

    async def run():
        first = await cache.get()
        second = await cache.refresh()
        return first, second

    first, second = asyncio.run(run())
    assert aggregate.calls == 2
    assert second is not first
    assert cache.snapshot is second
