"""
Aggregation of profile and library datasets per player.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from shared.logging import get_logger
from ..caching.batch_fetcher import CacheAsideBatchFetcher
from .resolver import IdentifierResolver, RawInputs

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class PlayerAggregator:
    """Combine cached profile and library data into one record per SteamID64."""

    def __init__(
        self,
        resolver: IdentifierResolver,
        profile_fetcher: CacheAsideBatchFetcher,
        library_fetcher: CacheAsideBatchFetcher,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.resolver = resolver
        self.profile_fetcher = profile_fetcher
        self.library_fetcher = library_fetcher
        self.metrics = metrics
        self.logger = get_logger("players.aggregator")

    async def aggregate(self, raw_inputs: RawInputs) -> Dict[str, Dict[str, Any]]:
        """
        Resolve ``raw_inputs`` and return ``{steam_id: profile fields + games}``.

        Every resolved id appears in the result. Cache or upstream failures
        propagate and fail the whole batch.
        """
        start = time.perf_counter()
        steam_ids = await self.resolver.resolve(raw_inputs)
        if not steam_ids:
            self.logger.info("No identifiers resolved; returning empty result")
            return {}

        libraries, profiles = await asyncio.gather(
            self.library_fetcher.fetch_all(steam_ids),
            self.profile_fetcher.fetch_all(steam_ids),
        )

        players = {
            steam_id: merge_player(profiles.get(steam_id), libraries.get(steam_id))
            for steam_id in dict.fromkeys(steam_ids)
        }

        duration = time.perf_counter() - start
        if self.metrics:
            self.metrics.increment_counter("players_aggregated_total", len(players))
            self.metrics.observe_histogram("aggregation_duration_seconds", duration)

        self.logger.info(
            "Players aggregated",
            requested=len(steam_ids),
            players=len(players),
            duration_ms=round(duration * 1000, 2),
        )
        return players


def merge_player(profile: Optional[Dict[str, Any]], library: Optional[Any]) -> Dict[str, Any]:
    """Overlay the library as ``games`` on a copy of the profile."""
    record = dict(profile or {})
    record["games"] = library
    return record
