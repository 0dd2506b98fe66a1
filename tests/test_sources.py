"""
tests/test_sources.py

Purpose:
    Validate each match data source against canned provider payloads:
    request shape, response mapping, and failure handling.
"""

from __future__ import annotations

import pytest

from cache import CacheStore
from models.match import MatchStatus, SourceConfidence
from sources.base import SourceError, date_window, get_json, involves
from sources.brave import BraveSearchSource, extract_score
from sources.espn import EspnSource, fuzzy_match_game
from sources.football_api import FootballApiSource, fixture_status
from sources.sportsdb import TheSportsDbSource


class _FakeResponse:
    def __init__(self, payload: dict | None = None, status_code: int = 200) -> None:
        self._payload = payload or {}
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError(f"http {self.status_code}")


class _FakeClient:
    """Routes GETs through ``handler(url, params)``; records every call."""

    def __init__(self, handler) -> None:
        self._handler = handler
        self.calls: list[dict] = []

    async def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self._handler(url, kwargs.get("params") or {})


def _espn_event(home, away, home_score, away_score, state="post"):
    return {
        "id": "401",
        "date": "2024-03-02T15:00Z",
        "season": {"slug": "2023-24-english-premier-league"},
        "competitions": [{
            "status": {"type": {"state": state, "completed": state == "post"}},
            "competitors": [
                {"homeAway": "away", "score": away_score, "team": {"displayName": away}},
                {"homeAway": "home", "score": home_score, "team": {"displayName": home}},
            ],
        }],
    }


class TestBaseHelpers:
    @pytest.mark.asyncio
    async def test_get_json_maps_status_codes(self):
        codes = {"/missing": 404, "/forbidden": 403, "/limited": 429, "/ok": 200}
        client = _FakeClient(lambda url, params: _FakeResponse({"ok": True}, codes[url]))

        assert await get_json(client, "/ok", "Test") == {"ok": True}
        assert await get_json(client, "/missing", "Test") is None
        with pytest.raises(SourceError):
            await get_json(client, "/forbidden", "Test")
        with pytest.raises(SourceError, match="rate limit"):
            await get_json(client, "/limited", "Test")

    def test_date_window_alternates_outwards(self):
        assert date_window("2024-03-02", 1, 1) == ["2024-03-02", "2024-03-01", "2024-03-03"]
        assert date_window("2024-03-02", 2, 0) == ["2024-03-02", "2024-03-01", "2024-02-29"]

    def test_date_window_without_date(self):
        assert len(date_window(None, 1, 1, fallback_days=3)) == 4

    def test_involves(self):
        assert involves("Liverpool", "Bournemouth", "Liverpool FC", "AFC Bournemouth")
        assert involves("Bournemouth", None, "Liverpool", "Bournemouth")
        assert not involves("Liverpool", "Arsenal", "Liverpool", "Bournemouth")
        assert not involves("Chelsea", None, "Liverpool", "Bournemouth")


class TestFootballApi:
    @staticmethod
    def _handler(url, params):
        if url.endswith("/teams"):
            teams = {
                "liverpool": [{"team": {"id": 40, "name": "Liverpool"}}],
                "bournemouth": [{"team": {"id": 35, "name": "Bournemouth"}}],
            }
            return _FakeResponse({"response": teams.get(params["search"], [])})
        if url.endswith("/fixtures") and params.get("date") == "2024-03-02":
            return _FakeResponse({"response": [{
                "fixture": {"id": 9, "date": "2024-03-02T15:00:00+00:00", "status": {"short": "FT"}},
                "league": {"name": "Premier League"},
                "teams": {"home": {"id": 40, "name": "Liverpool"}, "away": {"id": 35, "name": "Bournemouth"}},
                "goals": {"home": 4, "away": 1},
            }]})
        return _FakeResponse({"response": []})

    @pytest.mark.asyncio
    async def test_finds_fixture_by_date(self):
        client = _FakeClient(self._handler)
        source = FootballApiSource(client, "secret", CacheStore())

        result = await source.search("Liverpool", "Bournemouth", "2024-03-02")

        assert result.score == "4-1"
        assert result.status is MatchStatus.FINISHED
        assert result.confidence is SourceConfidence.VERY_HIGH
        assert result.league == "Premier League"
        assert client.calls[0]["headers"] == {"x-apisports-key": "secret"}

    @pytest.mark.asyncio
    async def test_team_ids_are_cached(self):
        client = _FakeClient(self._handler)
        source = FootballApiSource(client, "secret", CacheStore())

        await source.find_team_id("Liverpool")
        await source.find_team_id("Liverpool FC")

        assert sum(1 for c in client.calls if c["url"].endswith("/teams")) == 1

    @pytest.mark.asyncio
    async def test_unknown_team(self):
        source = FootballApiSource(_FakeClient(self._handler), "secret")
        assert await source.search("Nowhere Rovers", None, "2024-03-02") is None

    @pytest.mark.asyncio
    async def test_disabled_without_key(self):
        client = _FakeClient(self._handler)
        assert await FootballApiSource(client, None).search("Liverpool") is None
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_rejected_key_raises(self):
        source = FootballApiSource(_FakeClient(lambda url, params: _FakeResponse(status_code=403)), "bad")
        with pytest.raises(SourceError):
            await source.search("Liverpool")

    def test_fixture_status(self):
        assert fixture_status("PEN") is MatchStatus.FINISHED
        assert fixture_status("HT") is MatchStatus.LIVE
        assert fixture_status("NS") is MatchStatus.SCHEDULED


class TestEspn:
    @pytest.mark.asyncio
    async def test_finds_finished_match(self):
        def handler(url, params):
            if "/eng.1/" in url and params["dates"] == "20240302":
                return _FakeResponse({"events": [
                    _espn_event("Arsenal", "Chelsea", "2", "2"),
                    _espn_event("Liverpool", "AFC Bournemouth", "4", "1"),
                ]})
            return _FakeResponse({"events": []})

        client = _FakeClient(handler)
        source = EspnSource(client, ["eng.1", "esp.1"])

        result = await source.search("Liverpool", "Bournemouth", "2024-03-02")

        assert result.home_team == "Liverpool"
        assert result.score == "4-1"
        assert result.status is MatchStatus.FINISHED
        assert result.source == "ESPN"
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_scheduled_match_has_no_score(self):
        client = _FakeClient(lambda url, params: _FakeResponse(
            {"events": [_espn_event("Liverpool", "Bournemouth", "0", "0", state="pre")]}
        ))
        result = await EspnSource(client, ["eng.1"]).search("Liverpool", "Bournemouth", "2024-03-02")

        assert result.status is MatchStatus.SCHEDULED
        assert result.score is None
        assert not result.is_settled

    @pytest.mark.asyncio
    async def test_all_competitions_failing_raises(self):
        client = _FakeClient(lambda url, params: _FakeResponse(status_code=500))
        with pytest.raises(SourceError):
            await EspnSource(client, ["eng.1", "esp.1"]).search("Liverpool", None, "2024-03-02")

    def test_fuzzy_match_rejects_wrong_fixture(self):
        events = [_espn_event("Manchester United", "Everton", "1", "0")]
        assert fuzzy_match_game("Manchester City", None, events) is None
        assert fuzzy_match_game("Manchester United", "Everton", events) is events[0]


class TestTheSportsDb:
    @staticmethod
    def _handler(url, params):
        if url.endswith("/searchteams.php"):
            return _FakeResponse({"teams": [{"idTeam": "133602", "strSport": "Soccer"}]})
        return _FakeResponse({"results": [
            {"idEvent": "1", "strSport": "Soccer", "strHomeTeam": "Liverpool", "strAwayTeam": "Bournemouth",
             "intHomeScore": "4", "intAwayScore": "1", "dateEvent": "2024-03-02", "strLeague": "English Premier League"},
        ]})

    @pytest.mark.asyncio
    async def test_finds_recent_result(self):
        client = _FakeClient(self._handler)
        result = await TheSportsDbSource(client).search("Liverpool", "Bournemouth", "2024-03-03")

        assert result.score == "4-1"
        assert result.confidence is SourceConfidence.MEDIUM
        assert client.calls[0]["url"] == "https://www.thesportsdb.com/api/v1/json/3/searchteams.php"
        assert client.calls[1]["params"] == {"id": "133602"}

    @pytest.mark.asyncio
    async def test_ignores_distant_dates(self):
        result = await TheSportsDbSource(_FakeClient(self._handler)).search("Liverpool", None, "2024-04-20")
        assert result is None

    @pytest.mark.asyncio
    async def test_unknown_team(self):
        client = _FakeClient(lambda url, params: _FakeResponse({"teams": None}))
        assert await TheSportsDbSource(client).search("Nowhere Rovers") is None
        assert len(client.calls) == 1


class TestBraveSearch:
    def test_extract_score(self):
        result = extract_score("<strong>Liverpool</strong> 4-1 Bournemouth: Reds go top",
                               "Liverpool", "Bournemouth", "Brave Search", SourceConfidence.LOW)
        assert result.home_team == "Liverpool"
        assert result.away_team == "Bournemouth"
        assert result.score == "4-1"

    def test_extract_score_stops_away_side_at_prose(self):
        result = extract_score("Liverpool 4-1 Bournemouth in the Premier League on Saturday",
                               "Liverpool", "Bournemouth", "Brave Search", SourceConfidence.LOW)
        assert result.away_team == "Bournemouth"

    def test_extract_score_keeps_multi_word_away_side(self):
        result = extract_score("Chelsea 1-2 Brighton & Hove Albion, report", "Brighton", None,
                               "Brave Search", SourceConfidence.LOW)
        assert result.away_team == "Brighton & Hove Albion"
        assert result.winner.value == "AWAY"

    def test_extract_score_ignores_other_matches(self):
        assert extract_score("Arsenal 2-0 Chelsea", "Liverpool", None, "Brave Search", SourceConfidence.LOW) is None

    @pytest.mark.asyncio
    async def test_search(self):
        client = _FakeClient(lambda url, params: _FakeResponse({"web": {"results": [
            {"title": "Premier League table", "description": "Latest standings"},
            {"title": "Match report", "description": "Liverpool 4-1 Bournemouth: Reds go top", "url": "https://x"},
        ]}}))
        result = await BraveSearchSource(client, "token").search("Liverpool", "Bournemouth", "2024-03-02")

        assert result.score == "4-1"
        assert client.calls[0]["params"]["q"] == "Liverpool vs Bournemouth result 2024-03-02"
        assert client.calls[0]["headers"]["X-Subscription-Token"] == "token"

    @pytest.mark.asyncio
    async def test_disabled_without_key(self):
        client = _FakeClient(lambda url, params: _FakeResponse())
        assert await BraveSearchSource(client, None).search("Liverpool") is None
        assert client.calls == []
