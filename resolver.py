import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from cache import CacheStore, match_key
from catalog import FULL_TIME_RESULT
from models.bet import Selection
from models.match import EnrichedSelection, MatchResult, Winner
from normalize import teams_match
from sources.base import SourceAdapter

logger = logging.getLogger("resolver")

SETTLED_TTL = 24 * 3600
UNSETTLED_TTL = 5 * 60


@dataclass
class ResolverStats:
    requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    not_found: int = 0
    errors: int = 0
    calls_by_source: Dict[str, int] = field(default_factory=dict)
    wins_by_source: Dict[str, int] = field(default_factory=dict)
    failures_by_source: Dict[str, int] = field(default_factory=dict)
    total_response_ms: float = 0.0

    def record(self, response_ms: float) -> None:
        self.total_response_ms += response_ms

    @staticmethod
    def bump(counter: Dict[str, int], name: str) -> None:
        counter[name] = counter.get(name, 0) + 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "requests": self.requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "not_found": self.not_found,
            "errors": self.errors,
            "calls_by_source": dict(self.calls_by_source),
            "wins_by_source": dict(self.wins_by_source),
            "failures_by_source": dict(self.failures_by_source),
            "avg_response_ms": round(self.total_response_ms / self.requests, 1) if self.requests else 0.0,
            "hit_rate": f"{(self.cache_hits / self.requests * 100) if self.requests else 0:.1f}%",
        }


def determine_result(match: MatchResult, team: str, market: str) -> str:
    """Settle one selection against a match outcome.

    Full Time Result is the only modelled market. A drawn match settles a
    single-team Full Time Result selection as a loss.
    """
    if not match.is_settled:
        return "pending"
    if FULL_TIME_RESULT.lower() not in (market or "").lower():
        return "unknown"

    if teams_match(team, match.home_team):
        side = Winner.HOME
    elif teams_match(team, match.away_team):
        side = Winner.AWAY
    else:
        return "unknown"
    if match.winner is Winner.DRAW:
        return "loss"
    return "win" if match.winner is side else "loss"


class ResultResolver:
    """Resolves one selection through a priority-ordered chain of sources."""

    def __init__(self, sources: Sequence[SourceAdapter], cache: Optional[CacheStore] = None, timeout: float = 10.0,
                 log: Optional[logging.Logger] = None, stats: Optional[ResolverStats] = None):
        self.sources = tuple(sources)
        self.cache = cache
        self.timeout = timeout
        self.log = log or logger
        self.stats = stats or ResolverStats()

    async def resolve(self, selection: Selection, match_date: Optional[str] = None) -> EnrichedSelection:
        started = time.perf_counter()
        self.stats.requests += 1
        try:
            outcome = await self._resolve(selection, match_date)
        except Exception as e:
            self.stats.errors += 1
            self.log.exception(f"Error resolving {selection.team} v {selection.opponent}: {e}")
            outcome = {"result": "error", "status": "error", "error": str(e) or type(e).__name__}
        elapsed = (time.perf_counter() - started) * 1000.0
        self.stats.record(elapsed)
        return EnrichedSelection.merge(selection, response_time_ms=round(elapsed, 1), **outcome)

    async def _resolve(self, selection: Selection, match_date: Optional[str]) -> Dict[str, Any]:
        key = match_key(selection.team, selection.opponent, match_date)
        cached = self.cache.get(key) if self.cache is not None else None
        if cached is not None:
            self.stats.cache_hits += 1
            self.log.debug(f"Cache hit for {selection.team}")
            return self._outcome(cached, selection, source=f"{cached.source} (cached)")
        self.stats.cache_misses += 1

        for source in self.sources:
            self.stats.bump(self.stats.calls_by_source, source.name)
            try:
                match = await asyncio.wait_for(
                    source.search(selection.team, selection.opponent, match_date), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                self.stats.bump(self.stats.failures_by_source, source.name)
                self.log.warning(f"{source.name} timed out after {self.timeout}s for {selection.team}")
                continue
            except Exception as e:
                self.stats.bump(self.stats.failures_by_source, source.name)
                self.log.warning(f"{source.name} failed for {selection.team}: {e}")
                continue

            if match is None:
                self.log.debug(f"{source.name}: no data for {selection.team}")
                continue

            self.stats.bump(self.stats.wins_by_source, source.name)
            if self.cache is not None:
                self.cache.set(key, match, SETTLED_TTL if match.is_settled else UNSETTLED_TTL)
            self.log.info(f"Found result for {selection.team} via {source.name}: {match.score or match.status.value}")
            return self._outcome(match, selection, source=match.source)

        self.stats.not_found += 1
        self.log.info(f"No results found for {selection.team} from any source")
        return {"result": "unknown", "status": "not_found"}

    @staticmethod
    def _outcome(match: MatchResult, selection: Selection, source: str) -> Dict[str, Any]:
        return {
            "result": determine_result(match, selection.team, selection.market),
            "status": match.status.value,
            "score": match.score,
            "source": source,
            "source_confidence": match.confidence.value,
        }
