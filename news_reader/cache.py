"""
In-memory article cache with time-based refresh.

The controller owns the current cache generation. Only a completed
aggregation replaces it, and the replacement is a single assignment, so
readers always see one whole generation. Reads refresh synchronously when
no aggregation has succeeded yet or the cache is older than the configured
maximum age; concurrent stale reads share one refresh.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
import logging
from typing import Awaitable, Callable

from .config import CacheConfig
from .core.types import AggregationResult
from .logging_utils import log_event

logger = logging.getLogger(__name__)

Aggregate = Callable[[], Awaitable[AggregationResult]]
Clock = Callable[[], datetime]


class CacheController:
    """Serves the latest cache generation, refreshing it when stale.

    Attributes:
        cfg: Cache settings (maximum age)
        aggregate: Coroutine function producing a new generation
        clock: Source of the current time
    """

    def __init__(self, cfg: CacheConfig, aggregate: Aggregate, clock: Clock):
        self.cfg = cfg
        self.aggregate = aggregate
        self.clock = clock
        self._snapshot: AggregationResult | None = None
        self._last_success: datetime | None = None
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> AggregationResult | None:
        return self._snapshot

    @property
    def last_fetch(self) -> datetime | None:
        return self._last_success

    def is_stale(self) -> bool:
        if self._last_success is None:
            return True
        return self.clock() - self._last_success > timedelta(minutes=self.cfg.max_age_minutes)

    async def get(self) -> AggregationResult:
        """Return the current generation, refreshing first if it is stale."""
        if self.is_stale():
            async with self._lock:
                # Another reader may have refreshed while we waited.
                if self.is_stale():
                    await self._refresh_locked(reason="stale")
        assert self._snapshot is not None
        return self._snapshot

    async def refresh(self) -> AggregationResult:
        """Re-run aggregation unconditionally."""
        async with self._lock:
            return await self._refresh_locked(reason="forced")

    async def _refresh_locked(self, reason: str) -> AggregationResult:
        result = await self.aggregate()
        self._snapshot = result
        self._last_success = self.clock()
        log_event(
            logger,
            f"Cache refreshed ({reason}): {len(result.articles)} articles",
            event="cache_refresh",
            reason=reason,
            count=len(result.articles),
            failed=len(result.errors),
        )
        return result
