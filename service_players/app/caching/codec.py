"""
Negative-result codec for cached player datasets.

Redis answers ``None`` for a key it does not hold, so a dataset value of
``None`` ("upstream had nothing") cannot be stored as-is. It is stored as the
``false`` sentinel instead and decoded back into an explicit
:class:`CacheNegative` entry, distinct from :class:`CacheMiss`.

Only JSON objects and arrays are accepted as values, so the bare ``false``
token never collides with a real payload.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from shared.logging import get_logger


NEGATIVE_SENTINEL = "false"

logger = get_logger("players.codec")


class CacheMiss:
    """No entry in the cache store."""

    hit = False

    def unwrap(self) -> Any:
        raise LookupError("cache miss has no value")

    def __repr__(self) -> str:
        return "CacheMiss()"


class CacheNegative:
    """Cached result for an entity the upstream had nothing for."""

    hit = True

    def unwrap(self) -> None:
        return None

    def __repr__(self) -> str:
        return "CacheNegative()"


@dataclass(frozen=True)
class CacheValue:
    """Cached real value."""

    value: Any
    hit = True

    def unwrap(self) -> Any:
        return self.value


CacheEntry = Union[CacheMiss, CacheNegative, CacheValue]

CACHE_MISS = CacheMiss()
CACHE_NEGATIVE = CacheNegative()


def encode(value: Optional[Any]) -> str:
    """Encode a dataset value for storage.

    Only JSON objects and arrays are storable; a bare scalar such as ``False``
    would encode to the sentinel itself.
    """
    if value is None:
        return NEGATIVE_SENTINEL
    if not isinstance(value, (dict, list)):
        raise TypeError(f"cache values must be objects or arrays, not {type(value).__name__}")
    return json.dumps(value, separators=(",", ":"))


def decode(raw: Optional[Union[str, bytes]]) -> CacheEntry:
    """Decode a raw store value into a tagged cache entry."""
    if raw is None:
        return CACHE_MISS

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    if raw == NEGATIVE_SENTINEL:
        return CACHE_NEGATIVE

    try:
        return CacheValue(json.loads(raw))
    except json.JSONDecodeError:
        # Unreadable payloads are re-fetched and overwritten
        logger.warning("Discarding malformed cache payload", payload_prefix=raw[:32])
        return CACHE_MISS
