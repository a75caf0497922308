"""
Identifier resolution for player lookups.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from shared.logging import get_logger


ResolveId = Callable[[str], Awaitable[Optional[str]]]
RawInputs = Union[str, Sequence[str], None]


def split_raw_inputs(raw_inputs: RawInputs) -> List[str]:
    """Normalize a comma-joined string or a sequence into trimmed, non-empty inputs."""
    if raw_inputs is None:
        return []
    if isinstance(raw_inputs, str):
        raw_inputs = [raw_inputs]

    values: List[str] = []
    for item in raw_inputs:
        values.extend(part.strip() for part in item.split(","))
    return [value for value in values if value]


class IdentifierResolver:
    """Resolve raw ids, profile URLs and vanity names to SteamID64s.

    Inputs that do not resolve, or whose lookup fails, are dropped. Each
    input is resolved on its own, so duplicates are looked up (and kept)
    independently.
    """

    def __init__(self, resolve_id: ResolveId):
        self.resolve_id = resolve_id
        self.logger = get_logger("players.resolver")

    async def resolve(self, raw_inputs: RawInputs) -> List[str]:
        inputs = split_raw_inputs(raw_inputs)
        if not inputs:
            return []

        outcomes = await asyncio.gather(*(self.resolve_id(raw) for raw in inputs), return_exceptions=True)

        resolved: List[str] = []
        for raw, outcome in zip(inputs, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                self.logger.warning("Identifier resolution failed", raw=raw, error=str(outcome))
                continue
            if not outcome:
                self.logger.info("Identifier did not resolve", raw=raw)
                continue
            resolved.append(outcome)

        self.logger.debug("Resolved identifiers", requested=len(inputs), resolved=len(resolved))
        return resolved
