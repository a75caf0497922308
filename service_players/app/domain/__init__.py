"""
Domain helpers for the Players Service.

- resolver: raw caller input to canonical SteamID64s
- aggregator: concurrent dataset fetch and per-player merge
"""

from .resolver import IdentifierResolver, split_raw_inputs
from .aggregator import PlayerAggregator

__all__ = ["IdentifierResolver", "PlayerAggregator", "split_raw_inputs"]
