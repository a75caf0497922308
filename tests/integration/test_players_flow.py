"""
Integration tests for the player aggregation flow against the mock Steam API.
"""

import pytest
import httpx

from mocks.steam.server import MockSteamServer
from service_players.app.adapters.steam_client import SteamClient
from service_players.app.caching.batch_fetcher import CacheAsideBatchFetcher
from service_players.app.caching.codec import NEGATIVE_SENTINEL
from service_players.app.domain.aggregator import PlayerAggregator
from service_players.app.domain.resolver import IdentifierResolver
from shared.circuit_breaker import CircuitBreaker
from shared.test_helpers import GABE_ID, PRIVATE_ID, ROBIN_ID, RecordingCacheStore


MOCK_STEAM_URL = "http://steam.mock"


class TestPlayersFlow:
    """End-to-end aggregation through SteamClient, the batch fetchers and the mock Steam API."""

    @pytest.fixture
    def steam_server(self):
        return MockSteamServer(api_key="integration-key")

    @pytest.fixture
    def cache_store(self):
        return RecordingCacheStore()

    @pytest.fixture
    def aggregator(self, steam_server, cache_store):
        steam_client = SteamClient(
            MOCK_STEAM_URL,
            "integration-key",
            circuit_breaker=CircuitBreaker(name="steam_api_integration"),
            client=httpx.AsyncClient(
                base_url=MOCK_STEAM_URL,
                transport=httpx.ASGITransport(app=steam_server.app),
            ),
        )
        return PlayerAggregator(
            IdentifierResolver(steam_client.resolve_steam_id),
            CacheAsideBatchFetcher(cache_store, "profile", steam_client.get_player_summaries),
            CacheAsideBatchFetcher(cache_store, "library", steam_client.get_owned_games_batch),
        )

    @pytest.mark.asyncio
    async def test_mixed_identifiers(self, aggregator, steam_server):
        result = await aggregator.aggregate([
            "gabelogannewell",
            f"https://steamcommunity.com/profiles/{ROBIN_ID}",
            PRIVATE_ID,
            "no-such-vanity",
            GABE_ID,
        ])

        assert set(result) == {GABE_ID, ROBIN_ID, PRIVATE_ID}
        assert result[GABE_ID]["personaname"] == "Rabscuttle"
        assert result[GABE_ID]["games"]["game_count"] == 2
        assert result[ROBIN_ID]["games"] == {"game_count": 0, "games": []}
        assert result[PRIVATE_ID]["games"] is None
        assert steam_server.request_counts["player_summaries"] == 1
        assert steam_server.request_counts["owned_games"] == 3

    @pytest.mark.asyncio
    async def test_repeat_request_is_served_from_cache(self, aggregator, steam_server, cache_store):
        first = await aggregator.aggregate([GABE_ID, PRIVATE_ID])
        counts_after_first = dict(steam_server.request_counts)

        second = await aggregator.aggregate([GABE_ID, PRIVATE_ID])

        assert first == second
        assert steam_server.request_counts == counts_after_first
        assert cache_store.data[f"library/{PRIVATE_ID}"] == NEGATIVE_SENTINEL

    @pytest.mark.asyncio
    async def test_unknown_account_has_no_profile_fields(self, aggregator):
        unknown = "76561199999999999"

        result = await aggregator.aggregate([unknown])

        assert result == {unknown: {"games": None}}
