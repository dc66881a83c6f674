from common.schema import SupplyResult
from collections import defaultdict
from typing import Awaitable, Callable
import asyncio, logging, time

logger = logging.getLogger("TokenSupply.Cache")
logger.setLevel(logging.DEBUG)


class SupplyCache:
    """Time-bounded cache of SupplyResult keyed by metric name.

    The whole result is stored, so a clamped figure served from the cache still
    reports `clamped` and its warnings. Failed computations are not cached.
    A ttl of 0 disables caching.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, SupplyResult]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, metric: str) -> SupplyResult | None:
        entry = self._entries.get(metric)
        if entry is None:
            return None
        stored_at, result = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[metric]
            return None
        return result

    async def get_or_compute(self, metric: str, compute: Callable[[], Awaitable[SupplyResult]]) -> SupplyResult:
        if not self.enabled:
            return await compute()

        # 같은 metric에 대한 동시 요청은 한 번만 계산
        async with self._locks[metric]:
            cached = self.get(metric)
            if cached is not None:
                logger.debug(f"Cache hit for {metric} (block {cached.block_number})")
                return cached
            result = await compute()
            self._entries[metric] = (self._clock(), result)
            return result

    def invalidate(self, metric: str | None = None):
        if metric is None:
            self._entries.clear()
        else:
            self._entries.pop(metric, None)
