import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from models.match import MatchResult, MatchStatus, SourceConfidence
from sources.base import SourceError, date_window, get_json, involves

logger = logging.getLogger("sources.espn")

SCOREBOARD_URL = "https://site.api.espn.com/apis/site/v2/sports/soccer/{comp}/scoreboard"


def _competitors(event: Dict[str, Any]) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
    comps = event.get("competitions", [])
    if not comps:
        return None
    competitors = comps[0].get("competitors", [])
    if len(competitors) < 2:
        return None
    home = next((c for c in competitors if c.get("homeAway") == "home"), competitors[0])
    away = next((c for c in competitors if c is not home), competitors[1])
    return home, away


def _team_name(competitor: Dict[str, Any]) -> str:
    return competitor.get("team", {}).get("displayName", "")


def fuzzy_match_game(team: str, opponent: Optional[str], events: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Fuzzy match a selection to an ESPN event."""
    if not team or not events:
        return None

    candidates = []
    for ev in events:
        pair = _competitors(ev)
        if pair is None:
            continue
        home, away = _team_name(pair[0]), _team_name(pair[1])
        candidates.append((f"{home} v {away}", home, away, ev))

    query = f"{team} v {opponent}" if opponent else team
    matches = process.extract(query, [c[0] for c in candidates], scorer=fuzz.token_set_ratio,
                              score_cutoff=80, limit=5)
    for _, _, idx in matches:
        _, home, away, ev = candidates[idx]
        if involves(team, opponent, home, away):
            return ev
    return None


def event_to_result(event: Dict[str, Any], source: str, confidence: SourceConfidence) -> Optional[MatchResult]:
    pair = _competitors(event)
    if pair is None:
        return None
    home, away = pair
    status_type = event["competitions"][0].get("status", {}).get("type", {})
    state = status_type.get("state")
    if state == "post" and status_type.get("completed", True):
        status = MatchStatus.FINISHED
    elif state == "in":
        status = MatchStatus.LIVE
    else:
        status = MatchStatus.SCHEDULED

    def goals(c: Dict[str, Any]) -> Optional[int]:
        score = c.get("score")
        return int(score) if score not in (None, "") and str(score).isdigit() else None

    home_goals, away_goals = goals(home), goals(away)
    if status is MatchStatus.SCHEDULED:
        # Pre-match scoreboards report "0-0".
        home_goals = away_goals = None
    return MatchResult.from_scores(
        home_team=_team_name(home),
        away_team=_team_name(away),
        home_score=home_goals,
        away_score=away_goals,
        source=source,
        confidence=confidence,
        status=status,
        match_date=(event.get("date") or "")[:10] or None,
        league=event.get("season", {}).get("slug"),
    )


class EspnSource:
    """ESPN public soccer scoreboards, one request per competition and day."""

    name = "ESPN"
    confidence = SourceConfidence.HIGH

    def __init__(self, client, competitions: Sequence[str], date_spread_days: int = 1, fallback_days: int = 3):
        self._client = client
        self._competitions = list(competitions)
        self._date_spread_days = date_spread_days
        self._fallback_days = fallback_days

    async def fetch_scoreboard(self, day: str) -> List[Dict[str, Any]]:
        """All events on ``day`` across configured competitions."""
        params = {"dates": day.replace("-", "")}
        responses = await asyncio.gather(
            *(get_json(self._client, SCOREBOARD_URL.format(comp=comp), self.name, params=params)
              for comp in self._competitions),
            return_exceptions=True,
        )
        events: List[Dict[str, Any]] = []
        failures = 0
        for comp, data in zip(self._competitions, responses):
            if isinstance(data, Exception):
                failures += 1
                logger.debug(f"Soccer fetch failed for {comp}: {data}")
                continue
            events.extend((data or {}).get("events", []))
        if self._competitions and failures == len(self._competitions):
            raise SourceError(self.name, f"all scoreboard requests failed for {day}")
        return events

    async def search(self, team: str, opponent: Optional[str] = None,
                     match_date: Optional[str] = None) -> Optional[MatchResult]:
        for day in date_window(match_date, self._date_spread_days, self._date_spread_days, self._fallback_days):
            event = fuzzy_match_game(team, opponent, await self.fetch_scoreboard(day))
            if event is None:
                continue
            try:
                return event_to_result(event, self.name, self.confidence)
            except ValueError as e:
                logger.warning(f"ESPN: unusable event {event.get('id')}: {e}")
        return None
