"""
Mock Steam Web API server for local development and integration tests.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from fastapi import FastAPI, HTTPException, Query
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.logging import get_logger


@dataclass
class MockPlayer:
    """Mock Steam account."""
    steam_id: str
    persona_name: str
    vanity: Optional[str] = None
    public_library: bool = True
    games: List[Dict[str, Any]] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "steamid": self.steam_id,
            "communityvisibilitystate": 3 if self.public_library else 1,
            "profilestate": 1,
            "personaname": self.persona_name,
            "profileurl": f"https://steamcommunity.com/id/{self.vanity or self.steam_id}/",
            "avatar": f"https://avatars.steamstatic.com/{self.steam_id}.jpg",
            "personastate": 0,
        }


class MockSteamServer:
    """Mock Steam Web API implementation."""

    def __init__(self, port: int = 8090, api_key: Optional[str] = None):
        self.port = port
        self.api_key = api_key
        self.logger = get_logger("mock.steam")
        self.app = FastAPI(title="Mock Steam Web API", version="1.0.0")

        self.players: Dict[str, MockPlayer] = {}
        self.request_counts: Dict[str, int] = {}

        self._create_default_players()
        self._setup_routes()

    def _create_default_players(self):
        """Create sample accounts."""
        self.add_player(MockPlayer(
            steam_id="76561197960287930",
            persona_name="Rabscuttle",
            vanity="gabelogannewell",
            games=[
                {"appid": 440, "name": "Team Fortress 2", "playtime_forever": 1204},
                {"appid": 570, "name": "Dota 2", "playtime_forever": 96},
            ],
        ))
        self.add_player(MockPlayer(
            steam_id="76561197960435530",
            persona_name="Robin",
            vanity="robinwalker",
            games=[],
        ))
        self.add_player(MockPlayer(
            steam_id="76561198000000001",
            persona_name="Hidden",
            public_library=False,
        ))

    def add_player(self, player: MockPlayer):
        self.players[player.steam_id] = player

    def _check_key(self, key: Optional[str]):
        if self.api_key and key != self.api_key:
            raise HTTPException(status_code=403, detail="Forbidden")

    def _count(self, endpoint: str):
        self.request_counts[endpoint] = self.request_counts.get(endpoint, 0) + 1

    def _setup_routes(self):
        """Set up mock Steam routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-steam",
                "message": "Mock Steam Web API for the Player Aggregator",
                "version": "1.0.0",
                "players": len(self.players),
            }

        @self.app.get("/ISteamWebAPIUtil/GetServerInfo/v0001/")
        async def server_info():
            return {"servertime": 0, "servertimestring": "mock"}

        @self.app.get("/ISteamUser/ResolveVanityURL/v0001/")
        async def resolve_vanity(vanityurl: str = Query(...), key: Optional[str] = Query(None)):
            self._check_key(key)
            self._count("resolve_vanity")
            for player in self.players.values():
                if player.vanity and player.vanity.lower() == vanityurl.lower():
                    return {"response": {"steamid": player.steam_id, "success": 1}}
            return {"response": {"success": 42, "message": "No match"}}

        @self.app.get("/ISteamUser/GetPlayerSummaries/v0002/")
        async def player_summaries(steamids: str = Query(...), key: Optional[str] = Query(None)):
            self._check_key(key)
            self._count("player_summaries")
            ids = [steam_id for steam_id in steamids.split(",") if steam_id]
            if len(ids) > 100:
                raise HTTPException(status_code=400, detail="Too many steamids")
            players = [self.players[steam_id].summary() for steam_id in ids if steam_id in self.players]
            return {"response": {"players": players}}

        @self.app.get("/IPlayerService/GetOwnedGames/v0001/")
        async def owned_games(steamid: str = Query(...), key: Optional[str] = Query(None)):
            self._check_key(key)
            self._count("owned_games")
            player = self.players.get(steamid)
            if player is None or not player.public_library:
                return {"response": {}}
            return {"response": {"game_count": len(player.games), "games": player.games}}


def create_app():
    """Create mock Steam application."""
    server = MockSteamServer(api_key=os.getenv("MOCK_STEAM_API_KEY") or None)
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8090)
