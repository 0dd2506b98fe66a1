import logging
from datetime import date, timedelta
from typing import Any, List, Optional, Protocol

from models.match import MatchResult, SourceConfidence
from normalize import teams_match

logger = logging.getLogger("sources")


class SourceError(Exception):
    """Transport or authentication failure of one match data source."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class SourceAdapter(Protocol):
    name: str
    confidence: SourceConfidence

    async def search(self, team: str, opponent: Optional[str] = None,
                     match_date: Optional[str] = None) -> Optional[MatchResult]:
        """Return the matching result, or None when the source has no data."""
        ...


async def get_json(client, url: str, source: str, **kwargs) -> Optional[Any]:
    """GET ``url`` and decode JSON; None for 404, SourceError for auth and rate limits."""
    r = await client.get(url, **kwargs)
    if r.status_code == 404:
        return None
    if r.status_code in (401, 403):
        raise SourceError(source, f"authentication rejected ({r.status_code})")
    if r.status_code == 429:
        raise SourceError(source, "rate limit exceeded")
    r.raise_for_status()
    try:
        return r.json()
    except ValueError as e:
        logger.warning(f"{source}: invalid JSON from {url}: {e}")
        return None


def date_window(match_date: Optional[str], before: int, after: int, fallback_days: int = 0) -> List[str]:
    """ISO dates to search: the given date first, then alternating outwards.

    Without a date, today and the previous ``fallback_days`` days.
    """
    if not match_date:
        today = date.today()
        return [(today - timedelta(days=i)).isoformat() for i in range(fallback_days + 1)]
    centre = date.fromisoformat(match_date)
    dates = [centre]
    for i in range(1, max(before, after) + 1):
        if i <= before:
            dates.append(centre - timedelta(days=i))
        if i <= after:
            dates.append(centre + timedelta(days=i))
    return [d.isoformat() for d in dates]


def involves(team: str, opponent: Optional[str], home: str, away: str) -> bool:
    """True when a fixture between ``home`` and ``away`` is the one the selection is about."""
    if teams_match(team, home):
        return opponent is None or teams_match(opponent, away)
    if teams_match(team, away):
        return opponent is None or teams_match(opponent, home)
    return False
