import logging
from datetime import date
from typing import Any, Dict, Optional

from models.match import MatchResult, MatchStatus, SourceConfidence
from sources.base import get_json, involves

logger = logging.getLogger("sources.sportsdb")

BASE_URL = "https://www.thesportsdb.com/api/v1/json/{key}"


def _score(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


class TheSportsDbSource:
    """TheSportsDB: team search followed by the team's last results."""

    name = "TheSportsDB"
    confidence = SourceConfidence.MEDIUM

    def __init__(self, client, api_key: str = "3", max_date_distance_days: int = 3):
        self._client = client
        self._base = BASE_URL.format(key=api_key)
        self._max_date_distance_days = max_date_distance_days

    async def search(self, team: str, opponent: Optional[str] = None,
                     match_date: Optional[str] = None) -> Optional[MatchResult]:
        teams = await get_json(self._client, f"{self._base}/searchteams.php", self.name, params={"t": team})
        found = [t for t in (teams or {}).get("teams") or [] if t.get("strSport") in (None, "Soccer")]
        if not found:
            return None

        events = await get_json(self._client, f"{self._base}/eventslast.php", self.name,
                                params={"id": found[0]["idTeam"]})
        for event in (events or {}).get("results") or []:
            if event.get("strSport") not in (None, "Soccer"):
                continue
            if not involves(team, opponent, event.get("strHomeTeam", ""), event.get("strAwayTeam", "")):
                continue
            if match_date and not self._near(event.get("dateEvent"), match_date):
                continue
            result = self._to_result(event)
            if result:
                return result
        return None

    def _near(self, event_date: Optional[str], match_date: str) -> bool:
        if not event_date:
            return False
        try:
            delta = date.fromisoformat(event_date) - date.fromisoformat(match_date)
        except ValueError:
            return False
        return abs(delta.days) <= self._max_date_distance_days

    def _to_result(self, event: Dict[str, Any]) -> Optional[MatchResult]:
        try:
            home_score, away_score = _score(event.get("intHomeScore")), _score(event.get("intAwayScore"))
            if home_score is None or away_score is None:
                return None
            return MatchResult.from_scores(
                home_team=event["strHomeTeam"],
                away_team=event["strAwayTeam"],
                home_score=home_score,
                away_score=away_score,
                source=self.name,
                confidence=self.confidence,
                status=MatchStatus.FINISHED,
                match_date=event.get("dateEvent"),
                league=event.get("strLeague"),
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"TheSportsDB: unusable event {event.get('idEvent')}: {e}")
            return None
