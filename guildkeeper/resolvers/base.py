"""
Shared lookup machinery for the entity resolvers.

The Discord cache is eventually consistent: an entity created or renamed a
moment ago may not be in it yet. A cache miss is therefore never final until
the collection has been re-read once. TwoPhaseLookup makes that explicit:

    phase 1:  optional ID probe → match stages over the cached collection
    phase 2:  (only if phase 1 found nothing) refresh the collection once,
              then run the same match stages over the fresh snapshot

Match stages are ordered from most to least specific (ID, tag, name...). The
first stage that yields anything wins; if it yields more than one entity the
caller decides, via pick_one(), that this is an ambiguity rather than
silently taking the first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from guildkeeper.config.logging import get_logger
from guildkeeper.errors import GatewayError, ToolError

logger = get_logger(__name__)

E = TypeVar("E")

Stage = Callable[[list[E]], list[E]]

# <@123>, <@!123>, <#123>, <@&123>
_MENTION_RE = re.compile(r"^<(?:@[!&]?|#)(\d+)>$")


def names_match(name: str | None, identifier: str) -> bool:
    """Case-insensitive exact comparison."""
    return name is not None and name.casefold() == identifier.casefold()


def mention_id(identifier: str) -> str | None:
    """Return the ID inside a Discord mention (<@id>, <#id>, <@&id>), if any."""
    match = _MENTION_RE.match(identifier.strip())
    return match.group(1) if match else None


def pick_one(
    matches: list[E],
    *,
    not_found: Callable[[], ToolError],
    ambiguous: Callable[[list[E]], ToolError],
) -> E:
    """
    Return the single match, or raise.

    Args:
        matches: Candidates from one match stage
        not_found: Builds the error raised when there are no candidates
        ambiguous: Builds the error raised when there are several

    Raises:
        ToolError: Whatever the factories build
    """
    if not matches:
        raise not_found()
    if len(matches) > 1:
        raise ambiguous(matches)
    return matches[0]


@dataclass
class LookupResult(Generic[E]):
    """Outcome of a TwoPhaseLookup."""

    matches: list[E]
    searched: list[E] = field(default_factory=list)  # last collection scanned
    refreshed: bool = False


@dataclass
class TwoPhaseLookup(Generic[E]):
    """
    Cache check → conditional refresh → recheck.

    Args:
        cached: Returns the cached collection (no network)
        refresh: Re-reads the whole collection from the platform
        stages: Match stages, most specific first
        probe: Optional direct fetch tried before anything else (phase 1 only)
        description: What is being looked up, for log messages
    """

    cached: Callable[[], list[E]]
    refresh: Callable[[], Awaitable[list[E]]]
    stages: Sequence[Stage]
    probe: Callable[[], Awaitable[E | None]] | None = None
    description: str = "entities"

    def _match(self, collection: list[E]) -> list[E]:
        for stage in self.stages:
            matches = stage(collection)
            if matches:
                return matches
        return []

    async def run(self) -> LookupResult[E]:
        if self.probe is not None:
            found = await self.probe()
            if found is not None:
                return LookupResult(matches=[found])

        collection = self.cached()
        matches = self._match(collection)
        if matches:
            return LookupResult(matches=matches, searched=collection)

        logger.debug(f"No cached match for {self.description}; refreshing")
        try:
            collection = await self.refresh()
        except GatewayError as e:
            # Fall through to "not found" with what the cache had
            logger.warning(f"Refreshing {self.description} failed: {e}")
            return LookupResult(matches=[], searched=collection)

        return LookupResult(matches=self._match(collection), searched=collection, refreshed=True)
