"""
Players service for the Player Aggregator.
"""

from typing import List, Optional

from fastapi import Query

from shared.base_service import BaseService
from shared.circuit_breaker import circuit_breaker_manager
from shared.errors import ValidationError
from service_players.app.adapters.steam_client import SteamClient
from service_players.app.caching.batch_fetcher import CacheAsideBatchFetcher
from service_players.app.caching.redis_store import RedisCacheStore
from service_players.app.domain.aggregator import PlayerAggregator
from service_players.app.domain.resolver import IdentifierResolver, split_raw_inputs


PROFILE_DATASET = "profile"
LIBRARY_DATASET = "library"


class PlayersService(BaseService):
    """Player profile + library aggregation service."""

    def __init__(self):
        super().__init__("players", 8020)
        self.cache_store = RedisCacheStore(self.config.redis_url)
        self.steam_client = SteamClient(
            self.config.steam_api_url,
            self.config.steam_api_key,
            timeout=self.config.steam_timeout_seconds,
            library_concurrency=self.config.library_concurrency,
        )
        if not self.config.steam_api_key:
            self.logger.warning("PLAYERS_STEAM_API_KEY is not set; Steam requests will be unauthenticated")

        self.resolver = IdentifierResolver(self.steam_client.resolve_steam_id)
        self.profile_fetcher = CacheAsideBatchFetcher(
            self.cache_store,
            PROFILE_DATASET,
            self.steam_client.get_player_summaries,
            ttl=self.config.cache_ttl_seconds,
            metrics=self.metrics,
        )
        self.library_fetcher = CacheAsideBatchFetcher(
            self.cache_store,
            LIBRARY_DATASET,
            self.steam_client.get_owned_games_batch,
            ttl=self.config.cache_ttl_seconds,
            metrics=self.metrics,
        )
        self.aggregator = PlayerAggregator(
            self.resolver,
            self.profile_fetcher,
            self.library_fetcher,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.steam_client.close()
            await self.cache_store.close()

        self._setup_player_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.players_service = self

    def _setup_player_routes(self):
        """Set up player aggregation routes."""

        @self.app.get("/")
        async def root():
            """Service information."""
            return {
                "service": self.service_name,
                "version": "1.0.0",
                "endpoints": ["/api/v1/players", "/health", "/metrics"],
            }

        @self.app.get("/api/v1/players")
        async def get_players(
            steam_ids: Optional[List[str]] = Query(None),
            legacy_steam_ids: Optional[List[str]] = Query(None, alias="steamIds"),
        ):
            """
            Aggregate profile and owned games for each requested player.

            Accepts ``steam_ids`` (or ``steamIds``) repeated or comma-joined;
            each value may be a SteamID64, a community profile URL or a
            vanity name. Inputs that do not resolve are left out.
            """
            raw_inputs = split_raw_inputs((steam_ids or []) + (legacy_steam_ids or []))
            if len(raw_inputs) > self.config.max_batch_size:
                raise ValidationError(
                    f"At most {self.config.max_batch_size} identifiers per request",
                    details={"requested": len(raw_inputs), "limit": self.config.max_batch_size},
                )

            players = await self.aggregator.aggregate(raw_inputs)
            self.metrics.record_business_event("players_aggregated")
            return players

        @self.app.get("/api/v1/circuit-breakers")
        async def get_circuit_breakers():
            """Get circuit breaker status for upstream dependencies."""
            return {"circuit_breakers": circuit_breaker_manager.get_all_states()}

    async def _check_dependencies(self):
        """Check players service dependencies."""
        return {"redis": "ok" if await self.cache_store.ping() else "error"}


def create_app():
    """Create FastAPI application."""
    service = PlayersService()
    return service.app


if __name__ == "__main__":
    service = PlayersService()
    service.run()
