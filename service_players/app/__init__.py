"""
Player Aggregator service package.

The service fronts the Steam Web API with a Redis cache-aside layer and
returns one combined profile + library record per player:

- Resolution: raw ids, profile URLs and vanity names become SteamID64s
- Caching: one batched read and at most one batched write per dataset
- Negative caching: "upstream had nothing" is cached as well
- Aggregation: profile and library datasets merged per SteamID64

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP client for the Steam Web API.
- app.caching: Cache store, negative-result codec, batch fetcher.
- app.domain: Identifier resolution and aggregation.
"""
