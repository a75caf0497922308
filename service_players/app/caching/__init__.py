"""
Player cache package.

Provides the Redis cache store, the negative-result codec that keeps
"never cached" distinct from "cached as empty", and the cache-aside batch
fetcher shared by the profile and library datasets.
"""

from .codec import CACHE_MISS, CACHE_NEGATIVE, CacheEntry, CacheMiss, CacheNegative, CacheValue, NEGATIVE_SENTINEL, decode, encode
from .redis_store import CacheStore, RedisCacheStore
from .batch_fetcher import CacheAsideBatchFetcher

__all__ = [
    "CACHE_MISS",
    "CACHE_NEGATIVE",
    "CacheEntry",
    "CacheMiss",
    "CacheNegative",
    "CacheValue",
    "NEGATIVE_SENTINEL",
    "decode",
    "encode",
    "CacheStore",
    "RedisCacheStore",
    "CacheAsideBatchFetcher",
]
