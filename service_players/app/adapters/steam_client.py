"""
Steam Web API client for the Players Service.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException, get_circuit_breaker
from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception


STEAM_ID64_PATTERN = re.compile(r"^7656119\d{10}$")
_COMMUNITY_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?steamcommunity\.com/(?P<kind>profiles|id)/(?P<value>[^/?#\s]+)/?(?:[?#].*)?$",
    re.IGNORECASE,
)
_VANITY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{2,32}$")

# GetPlayerSummaries accepts at most 100 ids per request
PLAYER_SUMMARIES_CHUNK_SIZE = 100

RESOLVE_VANITY_PATH = "/ISteamUser/ResolveVanityURL/v0001/"
PLAYER_SUMMARIES_PATH = "/ISteamUser/GetPlayerSummaries/v0002/"
OWNED_GAMES_PATH = "/IPlayerService/GetOwnedGames/v0001/"


def is_steam_id64(value: str) -> bool:
    """Return True when ``value`` is a 17-digit individual-account SteamID64."""
    return bool(STEAM_ID64_PATTERN.match(value))


class SteamClient:
    """Async client for the Steam Web API endpoints the aggregator needs."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 10.0,
        library_concurrency: int = 10,
        circuit_breaker: Optional[CircuitBreaker] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.logger = get_logger("players.steam_client")
        self.circuit_breaker = circuit_breaker or get_circuit_breaker(
            "steam_api",
            failure_threshold=5,
            recovery_timeout=30.0
        )
        self.library_concurrency = max(1, library_concurrency)
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def resolve_steam_id(self, raw: str) -> Optional[str]:
        """
        Resolve a raw SteamID64, community profile URL or vanity name.

        Returns the SteamID64 as a string, or None when the input cannot be
        resolved. Only vanity names cost an upstream call.
        """
        candidate = raw.strip()
        if not candidate:
            return None

        if is_steam_id64(candidate):
            return candidate

        match = _COMMUNITY_URL_PATTERN.match(candidate)
        if match:
            if match.group("kind").lower() == "profiles":
                value = match.group("value")
                return value if is_steam_id64(value) else None
            candidate = match.group("value")

        if not _VANITY_PATTERN.match(candidate):
            self.logger.debug("Input is not a resolvable Steam identifier", raw=raw)
            return None

        payload = await self._get_json(RESOLVE_VANITY_PATH, {"vanityurl": candidate})
        response = (payload or {}).get("response", {})
        if response.get("success") != 1:
            self.logger.info("Vanity name did not resolve", vanity=candidate, message=response.get("message"))
            return None

        steam_id = str(response.get("steamid", ""))
        return steam_id if is_steam_id64(steam_id) else None

    async def get_player_summaries(self, steam_ids: Sequence[str]) -> Dict[str, Optional[Dict[str, Any]]]:
        """Fetch profiles for ``steam_ids``; ids Steam does not know map to None."""
        ids = list(dict.fromkeys(steam_ids))
        if not ids:
            return {}

        chunks = [
            ids[start:start + PLAYER_SUMMARIES_CHUNK_SIZE]
            for start in range(0, len(ids), PLAYER_SUMMARIES_CHUNK_SIZE)
        ]
        responses = await asyncio.gather(*(self._fetch_summaries_chunk(chunk) for chunk in chunks))

        profiles: Dict[str, Optional[Dict[str, Any]]] = {steam_id: None for steam_id in ids}
        for players in responses:
            for player in players:
                steam_id = str(player.get("steamid", ""))
                if steam_id in profiles:
                    profiles[steam_id] = player
        return profiles

    async def get_owned_games(self, steam_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the owned-games library for one player.

        Private or unknown profiles come back from Steam as an empty response
        (or 401/403) and map to None. A public profile with no games yields
        ``{"game_count": 0, "games": []}``.
        """
        params = {
            "steamid": steam_id,
            "include_appinfo": 1,
            "include_played_free_games": 1,
            "format": "json",
        }
        payload = await self._get_json(OWNED_GAMES_PATH, params, not_found_statuses=(401, 403))
        if payload is None:
            return None

        response = payload.get("response") or {}
        if "game_count" not in response:
            return None

        return {
            "game_count": response["game_count"],
            "games": response.get("games", []),
        }

    async def get_owned_games_batch(self, steam_ids: Iterable[str]) -> Dict[str, Optional[Dict[str, Any]]]:
        """Fetch libraries for many players with bounded concurrency."""
        ids = list(dict.fromkeys(steam_ids))
        # Created per call so the semaphore belongs to the running loop
        semaphore = asyncio.Semaphore(self.library_concurrency)

        async def _bounded(steam_id: str) -> Optional[Dict[str, Any]]:
            async with semaphore:
                return await self.get_owned_games(steam_id)

        libraries = await asyncio.gather(*(_bounded(steam_id) for steam_id in ids))
        return dict(zip(ids, libraries))

    async def ping(self) -> bool:
        """Return True when the Steam API host answers at all."""
        try:
            response = await self._client.get("/ISteamWebAPIUtil/GetServerInfo/v0001/")
            return response.status_code == 200
        except httpx.HTTPError as exc:
            self.logger.error("Steam API health check failed", error=str(exc))
            return False

    async def _fetch_summaries_chunk(self, chunk: List[str]) -> List[Dict[str, Any]]:
        payload = await self._get_json(PLAYER_SUMMARIES_PATH, {"steamids": ",".join(chunk)})
        return list(((payload or {}).get("response") or {}).get("players", []))

    @retry_on_exception((httpx.TransportError,), config=RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0))
    async def _send(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        query = dict(params)
        if self.api_key:
            query["key"] = self.api_key
        return await self._client.get(path, params=query)

    async def _get_json(
        self,
        path: str,
        params: Dict[str, Any],
        *,
        not_found_statuses: Sequence[int] = (),
    ) -> Optional[Dict[str, Any]]:
        """Execute a GET with circuit breaker, retry and error mapping."""

        async def _request() -> Optional[Dict[str, Any]]:
            response = await self._send(path, params)

            if response.status_code in not_found_statuses:
                self.logger.info("Steam resource unavailable", path=path, status_code=response.status_code)
                return None

            if response.status_code != 200:
                self.logger.error(
                    "Steam API request failed",
                    path=path,
                    status_code=response.status_code,
                    response=response.text[:200]
                )
                raise UpstreamError(
                    f"Unexpected status {response.status_code}",
                    details={"path": path, "status_code": response.status_code}
                )

            try:
                return response.json()
            except ValueError as exc:
                raise UpstreamError("Malformed JSON response", details={"path": path}) from exc

        try:
            return await self.circuit_breaker.call(_request)
        except UpstreamError:
            raise
        except CircuitBreakerOpenException as exc:
            self.logger.warning("Steam API circuit open", path=path)
            raise UpstreamError(str(exc), details={"path": path}) from exc
        except RetryError as exc:
            raise UpstreamError(str(exc.last_exception), details={"path": path, "attempts": exc.attempts}) from exc
        except httpx.HTTPError as exc:
            self.logger.error("Steam API request failed", path=path, error=str(exc))
            raise UpstreamError(str(exc), details={"path": path}) from exc
