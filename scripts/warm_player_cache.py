#!/usr/bin/env python3
"""
Warm the player profile and library caches for a list of Steam identifiers.

Runs the same resolve + cache-aside fetch path as the players endpoint, so
every resolvable identifier ends up cached (including negative entries for
private libraries). Useful before demos or after flushing Redis.
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from service_players.app.adapters.steam_client import SteamClient  # noqa: E402
from service_players.app.caching.batch_fetcher import CacheAsideBatchFetcher  # noqa: E402
from service_players.app.caching.redis_store import RedisCacheStore  # noqa: E402
from service_players.app.domain.aggregator import PlayerAggregator  # noqa: E402
from service_players.app.domain.resolver import IdentifierResolver, split_raw_inputs  # noqa: E402
from shared.config import get_config  # noqa: E402
from shared.logging import configure_logging  # noqa: E402


class _DryRunStore:
    """Reads through to Redis but drops every write."""

    def __init__(self, store: RedisCacheStore):
        self._store = store
        self.skipped_writes = 0

    async def multi_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        return await self._store.multi_get(keys)

    async def multi_set(self, pairs: Sequence[Tuple[str, str]], ttl: Optional[int] = None) -> None:
        self.skipped_writes += len(pairs)


async def warm(
    *,
    raw_inputs: List[str],
    redis_url: str,
    steam_api_url: str,
    steam_api_key: str,
    ttl: Optional[int],
    concurrency: int,
    dry_run: bool,
) -> dict:
    """Execute cache warming and return the summary."""
    redis_store = RedisCacheStore(redis_url)
    store = _DryRunStore(redis_store) if dry_run else redis_store
    steam_client = SteamClient(steam_api_url, steam_api_key, library_concurrency=concurrency)

    aggregator = PlayerAggregator(
        IdentifierResolver(steam_client.resolve_steam_id),
        CacheAsideBatchFetcher(store, "profile", steam_client.get_player_summaries, ttl=ttl),
        CacheAsideBatchFetcher(store, "library", steam_client.get_owned_games_batch, ttl=ttl),
    )

    try:
        if not await steam_client.ping():
            raise RuntimeError(f"Steam API at {steam_api_url} is not reachable")
        players = await aggregator.aggregate(raw_inputs)
    finally:
        await steam_client.close()
        await redis_store.close()

    summary = {
        "requested": len(raw_inputs),
        "players": len(players),
        "private_libraries": sum(1 for record in players.values() if record["games"] is None),
        "unknown_profiles": sum(1 for record in players.values() if "steamid" not in record),
        "dry_run": dry_run,
    }
    if dry_run:
        summary["skipped_writes"] = store.skipped_writes
    return summary


def _load_inputs(args: argparse.Namespace) -> List[str]:
    raw: List[str] = list(args.steam_ids or [])
    if args.ids_file:
        raw.extend(args.ids_file.read_text().splitlines())
    return split_raw_inputs(raw)


def _parse_args() -> argparse.Namespace:
    config = get_config("players", 8020)
    parser = argparse.ArgumentParser(description="Warm Redis caches for Steam player profiles and libraries.")
    parser.add_argument("--steam-ids", action="append", help="SteamID64, profile URL or vanity name (repeatable, comma-joined allowed)")
    parser.add_argument("--ids-file", type=Path, default=None, help="File with one identifier per line")
    parser.add_argument("--redis-url", default=config.redis_url, help="Redis connection URL")
    parser.add_argument("--steam-api-url", default=config.steam_api_url, help="Steam Web API base URL")
    parser.add_argument("--ttl", type=int, default=config.cache_ttl_seconds, help="Cache entry TTL in seconds")
    parser.add_argument("--concurrency", type=int, default=config.library_concurrency, help="Concurrent owned-games requests")
    parser.add_argument("--dry-run", action="store_true", help="Do not write to Redis; report what would be cached")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    args = parser.parse_args()
    args.steam_api_key = config.steam_api_key
    configure_logging("players-cache-warm", config.log_level)
    return args


def main() -> int:
    args = _parse_args()
    raw_inputs = _load_inputs(args)
    if not raw_inputs:
        print("[cache-warm] no identifiers given; use --steam-ids or --ids-file", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(
            warm(
                raw_inputs=raw_inputs,
                redis_url=args.redis_url,
                steam_api_url=args.steam_api_url,
                steam_api_key=args.steam_api_key,
                ttl=args.ttl,
                concurrency=args.concurrency,
                dry_run=args.dry_run,
            )
        )
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[cache-warm] failed: {exc}", file=sys.stderr)
        return 1

    if args.dry_run:
        print("[cache-warm] DRY RUN - no Redis writes executed")

    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
