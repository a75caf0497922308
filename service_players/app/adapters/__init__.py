"""
Adapters package for the Players Service.

Contains the HTTP client wrapper for the Steam Web API. The adapter
encapsulates:

- Base URL, API key and request shapes
- Retry policy and circuit breaker
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .steam_client import SteamClient, is_steam_id64

__all__ = [
    "SteamClient",
    "is_steam_id64",
]
