import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from cache import CacheStore, team_key
from models.match import MatchResult, MatchStatus, SourceConfidence
from normalize import normalize_team_name
from sources.base import get_json

logger = logging.getLogger("sources.football_api")

BASE_URL = "https://v3.football.api-sports.io"
TEAM_CACHE_TTL = 7 * 24 * 3600

FINISHED_CODES = {"FT", "AET", "PEN"}
LIVE_CODES = {"1H", "HT", "2H", "ET", "BT", "P", "LIVE", "INT", "SUSP"}


def fixture_status(short: str) -> MatchStatus:
    if short in FINISHED_CODES:
        return MatchStatus.FINISHED
    if short in LIVE_CODES:
        return MatchStatus.LIVE
    return MatchStatus.SCHEDULED


class FootballApiSource:
    """API-Football (api-sports.io v3), the most authoritative source."""

    name = "Football API"
    confidence = SourceConfidence.VERY_HIGH

    def __init__(self, client, api_key: Optional[str], cache: Optional[CacheStore] = None,
                 date_spread_days: int = 2, recent_days: int = 30):
        self._client = client
        self._api_key = api_key
        self._cache = cache
        self._date_spread_days = date_spread_days
        self._recent_days = recent_days

    async def search(self, team: str, opponent: Optional[str] = None,
                     match_date: Optional[str] = None) -> Optional[MatchResult]:
        if not self._api_key:
            return None

        team_id = await self.find_team_id(team)
        if not team_id:
            logger.info(f"Football API: team not found: {team}")
            return None
        opponent_id = await self.find_team_id(opponent) if opponent else None

        if match_date:
            result = await self._search_by_date(team_id, opponent_id, match_date)
            if result:
                return result
        if opponent_id:
            result = await self._search_recent(team_id, opponent_id)
            if result:
                return result
            return await self._search_head_to_head(team_id, opponent_id)
        return None

    async def find_team_id(self, name: str) -> Optional[int]:
        key = team_key("football_api", name)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached:
                return cached["id"]

        data = await self._get("/teams", {"search": normalize_team_name(name) or name})
        candidates = (data or {}).get("response") or []
        if not candidates:
            return None

        wanted = normalize_team_name(name)
        best = candidates[0]
        for entry in candidates:
            found = normalize_team_name(entry.get("team", {}).get("name", ""))
            if found and (wanted in found or found in wanted):
                best = entry
                break

        info = {"id": best["team"]["id"], "name": best["team"]["name"]}
        if self._cache is not None:
            self._cache.set(key, info, TEAM_CACHE_TTL)
        logger.debug(f"Football API: matched '{name}' to '{info['name']}' (ID: {info['id']})")
        return info["id"]

    async def _search_by_date(self, team_id: int, opponent_id: Optional[int], match_date: str) -> Optional[MatchResult]:
        centre = date.fromisoformat(match_date)
        spread = self._date_spread_days
        for offset in sorted(range(-spread, spread + 1), key=abs):
            day = (centre + timedelta(days=offset)).isoformat()
            data = await self._get("/fixtures", {"team": team_id, "date": day})
            match = self._pick(data, opponent_id, finished_only=False)
            if match:
                logger.debug(f"Football API: found match on {day}")
                return match
        return None

    async def _search_recent(self, team_id: int, opponent_id: int) -> Optional[MatchResult]:
        today = date.today()
        params = {
            "team": team_id,
            "from": (today - timedelta(days=self._recent_days)).isoformat(),
            "to": today.isoformat(),
            "status": "FT",
        }
        return self._pick(await self._get("/fixtures", params), opponent_id, finished_only=True)

    async def _search_head_to_head(self, team_id: int, opponent_id: int) -> Optional[MatchResult]:
        data = await self._get("/fixtures/headtohead", {"h2h": f"{team_id}-{opponent_id}", "last": 5})
        return self._pick(data, opponent_id, finished_only=True)

    def _pick(self, data: Optional[Dict[str, Any]], opponent_id: Optional[int],
              finished_only: bool) -> Optional[MatchResult]:
        fixtures: List[Dict[str, Any]] = (data or {}).get("response") or []
        for fixture in fixtures:
            home, away = fixture["teams"]["home"], fixture["teams"]["away"]
            if opponent_id and opponent_id not in (home.get("id"), away.get("id")):
                continue
            status = fixture_status(fixture["fixture"]["status"]["short"])
            if finished_only and status is not MatchStatus.FINISHED:
                continue
            try:
                return MatchResult.from_scores(
                    home_team=home["name"],
                    away_team=away["name"],
                    home_score=fixture["goals"]["home"],
                    away_score=fixture["goals"]["away"],
                    source=self.name,
                    confidence=self.confidence,
                    status=status,
                    match_date=(fixture["fixture"].get("date") or "")[:10] or None,
                    league=(fixture.get("league") or {}).get("name"),
                )
            except ValueError as e:
                logger.warning(f"Football API: skipping fixture {fixture['fixture'].get('id')}: {e}")
        return None

    async def _get(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await get_json(self._client, BASE_URL + path, self.name, params=params,
                              headers={"x-apisports-key": self._api_key})
