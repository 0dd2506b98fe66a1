import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from cache import CacheStore
from config import Config
from models.bet import Selection
from models.match import EnrichedSelection
from resolver import ResultResolver
from sources.base import SourceAdapter
from sources.brave import BraveSearchSource
from sources.espn import EspnSource
from sources.football_api import FootballApiSource
from sources.sportsdb import TheSportsDbSource

logger = logging.getLogger("match_results")


def default_sources(config: Config, client: httpx.AsyncClient, cache: Optional[CacheStore] = None) -> List[SourceAdapter]:
    """The fixed source chain, most authoritative first."""
    return [
        FootballApiSource(client, config.football_api_key, cache),
        EspnSource(client, config.soccer_competitions),
        TheSportsDbSource(client, config.sportsdb_api_key),
        BraveSearchSource(client, config.brave_api_key),
    ]


def chunked(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class MatchResultService:
    """Resolves a slip's selections in bounded-concurrency chunks, preserving order."""

    def __init__(self, resolver: ResultResolver, concurrency: int = 2, client: Optional[httpx.AsyncClient] = None):
        self.resolver = resolver
        self.concurrency = max(1, concurrency)
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> "MatchResultService":
        cache = CacheStore(
            max_entries=config.cache_max_entries,
            default_ttl_seconds=config.cache_ttl_minutes * 60,
            enabled=config.cache_enabled,
        )
        client = httpx.AsyncClient(timeout=config.http_timeout)
        resolver = ResultResolver(default_sources(config, client, cache), cache, timeout=config.source_timeout)
        return cls(resolver, config.concurrent_processing, client)

    async def fetch_match_results(self, selections: Sequence[Selection], concurrency: Optional[int] = None,
                                  match_date: Optional[str] = None) -> List[EnrichedSelection]:
        size = max(1, concurrency or self.concurrency)
        logger.info(f"Fetching results for {len(selections)} selections (concurrency: {size})")

        results: List[EnrichedSelection] = []
        for batch in chunked(list(selections), size):
            outcomes = await asyncio.gather(
                *(self.resolver.resolve(selection, match_date) for selection in batch),
                return_exceptions=True,
            )
            for selection, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error(f"Error fetching result for {selection.team}: {outcome!r}")
                    outcome = EnrichedSelection.merge(
                        selection, result="error", status="error", error=str(outcome) or type(outcome).__name__
                    )
                results.append(outcome)

        logger.info(f"Completed fetching results for {len(results)} selections")
        return results

    def stats(self) -> Dict[str, Any]:
        data = self.resolver.stats.as_dict()
        if self.resolver.cache is not None:
            data["cache"] = self.resolver.cache.stats()
        return data

    def purge_cache(self) -> int:
        """Drop expired cache entries; returns how many were removed."""
        if self.resolver.cache is None:
            return 0
        return self.resolver.cache.purge_expired()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
