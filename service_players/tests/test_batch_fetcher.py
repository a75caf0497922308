"""
Unit tests for the cache-aside batch fetcher.
"""

import pytest

from service_players.app.caching.batch_fetcher import CacheAsideBatchFetcher
from service_players.app.caching.codec import NEGATIVE_SENTINEL, encode
from shared.errors import CacheUnavailableError, UpstreamError
from shared.test_helpers import (
    ALFRED_ID,
    GABE_ID,
    PRIVATE_ID,
    ROBIN_ID,
    RecordingCacheStore,
    RecordingUpstream,
    TestDataFactory,
)


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []

    def increment_counter(self, metric_name: str, amount: float = 1, **labels):
        self.counters.append((metric_name, amount, labels))


class TestCacheAsideBatchFetcher:
    """Test cases for CacheAsideBatchFetcher."""

    @pytest.fixture
    def gabe_profile(self):
        return TestDataFactory.create_profile(GABE_ID, "Rabscuttle")

    @pytest.fixture
    def robin_profile(self):
        return TestDataFactory.create_profile(ROBIN_ID, "Robin")

    @pytest.mark.asyncio
    async def test_mixed_hits_and_misses(self, gabe_profile, robin_profile):
        """Only uncached ids reach upstream and get written back."""
        store = RecordingCacheStore({
            f"profile/{GABE_ID}": encode(gabe_profile),
            f"profile/{PRIVATE_ID}": NEGATIVE_SENTINEL,
        })
        upstream = RecordingUpstream({ROBIN_ID: robin_profile})
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        result = await fetcher.fetch_all([GABE_ID, PRIVATE_ID, ROBIN_ID, ALFRED_ID])

        assert result == {
            GABE_ID: gabe_profile,
            PRIVATE_ID: None,
            ROBIN_ID: robin_profile,
            ALFRED_ID: None,
        }
        assert store.get_calls == [[
            f"profile/{GABE_ID}",
            f"profile/{PRIVATE_ID}",
            f"profile/{ROBIN_ID}",
            f"profile/{ALFRED_ID}",
        ]]
        assert upstream.calls == [[ROBIN_ID, ALFRED_ID]]
        assert store.set_calls == [[
            (f"profile/{ROBIN_ID}", encode(robin_profile)),
            (f"profile/{ALFRED_ID}", NEGATIVE_SENTINEL),
        ]]

    @pytest.mark.asyncio
    async def test_all_hits_skip_upstream_and_write(self, gabe_profile):
        store = RecordingCacheStore({
            f"profile/{GABE_ID}": encode(gabe_profile),
            f"profile/{PRIVATE_ID}": NEGATIVE_SENTINEL,
        })
        upstream = RecordingUpstream()
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        result = await fetcher.fetch_all([GABE_ID, PRIVATE_ID])

        assert result == {GABE_ID: gabe_profile, PRIVATE_ID: None}
        assert len(store.get_calls) == 1
        assert upstream.calls == []
        assert store.set_calls == []

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, gabe_profile):
        store = RecordingCacheStore()
        upstream = RecordingUpstream({GABE_ID: gabe_profile})
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        first = await fetcher.fetch_all([GABE_ID, ROBIN_ID])
        second = await fetcher.fetch_all([GABE_ID, ROBIN_ID])

        assert first == second == {GABE_ID: gabe_profile, ROBIN_ID: None}
        assert upstream.calls == [[GABE_ID, ROBIN_ID]]
        assert len(store.get_calls) == 2
        assert len(store.set_calls) == 1

    @pytest.mark.asyncio
    async def test_negative_result_is_cached(self):
        """A None from upstream is remembered and not fetched again."""
        store = RecordingCacheStore()
        upstream = RecordingUpstream()
        fetcher = CacheAsideBatchFetcher(store, "library", upstream)

        assert await fetcher.fetch_all([PRIVATE_ID]) == {PRIVATE_ID: None}
        assert store.data == {f"library/{PRIVATE_ID}": NEGATIVE_SENTINEL}

        assert await fetcher.fetch_all([PRIVATE_ID]) == {PRIVATE_ID: None}
        assert upstream.calls == [[PRIVATE_ID]]

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_looked_up_once(self):
        store = RecordingCacheStore()
        library = TestDataFactory.create_library(440)
        upstream = RecordingUpstream({GABE_ID: library})
        fetcher = CacheAsideBatchFetcher(store, "library", upstream)

        result = await fetcher.fetch_all([GABE_ID, GABE_ID])

        assert result == {GABE_ID: library}
        assert store.get_calls == [[f"library/{GABE_ID}"]]
        assert upstream.calls == [[GABE_ID]]

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_calls(self):
        store = RecordingCacheStore()
        upstream = RecordingUpstream()
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        assert await fetcher.fetch_all([]) == {}
        assert store.get_calls == []
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_ttl_is_passed_to_store(self):
        store = RecordingCacheStore()
        fetcher = CacheAsideBatchFetcher(store, "profile", RecordingUpstream(), ttl=120)

        await fetcher.fetch_all([GABE_ID])

        assert store.ttls == [120]

    @pytest.mark.asyncio
    async def test_upstream_failure_writes_nothing(self):
        store = RecordingCacheStore()
        upstream = RecordingUpstream(error=UpstreamError("Steam down"))
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        with pytest.raises(UpstreamError):
            await fetcher.fetch_all([GABE_ID])

        assert store.set_calls == []
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_cache_read_failure_propagates(self):
        store = RecordingCacheStore()
        store.fail_reads = True
        upstream = RecordingUpstream()
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        with pytest.raises(CacheUnavailableError):
            await fetcher.fetch_all([GABE_ID])

        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_cache_write_failure_propagates(self, gabe_profile):
        store = RecordingCacheStore()
        store.fail_writes = True
        upstream = RecordingUpstream({GABE_ID: gabe_profile})
        fetcher = CacheAsideBatchFetcher(store, "profile", upstream)

        with pytest.raises(CacheUnavailableError):
            await fetcher.fetch_all([GABE_ID, ROBIN_ID])

        assert upstream.calls == [[GABE_ID, ROBIN_ID]]
        assert len(store.set_calls) == 1
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_records_hit_and_miss_metrics(self, gabe_profile):
        store = RecordingCacheStore({f"profile/{GABE_ID}": encode(gabe_profile)})
        metrics = DummyMetrics()
        fetcher = CacheAsideBatchFetcher(store, "profile", RecordingUpstream(), metrics=metrics)

        await fetcher.fetch_all([GABE_ID, ROBIN_ID, ALFRED_ID])

        assert ("cache_hits_total", 1, {"cache_type": "profile"}) in metrics.counters
        assert ("cache_misses_total", 2, {"cache_type": "profile"}) in metrics.counters
        assert ("upstream_calls_total", 1, {"capability": "profile"}) in metrics.counters
