"""
Cache-aside batch fetcher shared by the player datasets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from shared.logging import get_logger
from .codec import decode, encode
from .redis_store import CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


UpstreamBatchFetch = Callable[[List[str]], Awaitable[Mapping[str, Optional[Any]]]]


class CacheAsideBatchFetcher:
    """Resolve a batch of ids for one dataset through the cache store.

    Every call issues exactly one cache read. Ids missing from the cache are
    fetched from upstream in a single batched call and written back in a
    single batched write, with ``None`` results stored as negative entries.
    Ids already cached (negative or not) never reach upstream.
    """

    def __init__(
        self,
        store: CacheStore,
        dataset: str,
        upstream_fetch: UpstreamBatchFetch,
        *,
        ttl: Optional[int] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.store = store
        self.dataset = dataset
        self.upstream_fetch = upstream_fetch
        self.ttl = ttl
        self.metrics = metrics
        self.logger = get_logger(f"players.fetcher.{dataset}")

    def cache_key(self, steam_id: str) -> str:
        return f"{self.dataset}/{steam_id}"

    async def fetch_all(self, ids: Iterable[str]) -> Dict[str, Optional[Any]]:
        """Return a value (or ``None``) for every id in ``ids``."""
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return {}

        raw_values = await self.store.multi_get([self.cache_key(steam_id) for steam_id in unique_ids])

        results: Dict[str, Optional[Any]] = {}
        miss_ids: List[str] = []
        for steam_id, raw in zip(unique_ids, raw_values):
            entry = decode(raw)
            if entry.hit:
                results[steam_id] = entry.unwrap()
            else:
                miss_ids.append(steam_id)

        self._record_access(hits=len(results), misses=len(miss_ids))

        if not miss_ids:
            self.logger.debug("All ids served from cache", dataset=self.dataset, count=len(results))
            return results

        self.logger.info(
            "Fetching cache misses from upstream",
            dataset=self.dataset,
            hits=len(results),
            misses=len(miss_ids),
        )
        fetched = await self.upstream_fetch(miss_ids)
        if self.metrics:
            self.metrics.increment_counter("upstream_calls_total", capability=self.dataset)

        fresh = {steam_id: fetched.get(steam_id) for steam_id in miss_ids}
        await self.store.multi_set(
            [(self.cache_key(steam_id), encode(value)) for steam_id, value in fresh.items()],
            ttl=self.ttl,
        )

        results.update(fresh)
        return results

    def _record_access(self, *, hits: int, misses: int) -> None:
        if not self.metrics:
            return
        if hits:
            self.metrics.increment_counter("cache_hits_total", hits, cache_type=self.dataset)
        if misses:
            self.metrics.increment_counter("cache_misses_total", misses, cache_type=self.dataset)
