import logging
import re
from typing import Optional

from models.match import MatchResult, MatchStatus, SourceConfidence
from sources.base import get_json, involves

logger = logging.getLogger("sources.brave")

SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"

TAG_RE = re.compile(r"<[^>]+>")
# Away side: capitalised words only ("Bournemouth in the Premier League" -> "Bournemouth").
SCORE_RE = re.compile(
    r"(?P<home>[A-Za-z][A-Za-z .'&]{1,40}?)\s+(?P<hg>\d{1,2})\s*[-–]\s*(?P<ag>\d{1,2})\s+"
    r"(?P<away>[A-Z][A-Za-z.'\-]*(?:\s+(?:&|[A-Z][A-Za-z.'\-]*))*)"
)


def extract_score(text: str, team: str, opponent: Optional[str], source: str,
                  confidence: SourceConfidence, match_date: Optional[str] = None) -> Optional[MatchResult]:
    """Find a "Home 2-1 Away" scoreline about the selection in free text."""
    plain = TAG_RE.sub("", text)
    for m in SCORE_RE.finditer(plain):
        home, away = m.group("home").strip(), m.group("away").strip()
        if not involves(team, opponent, home, away):
            continue
        try:
            return MatchResult.from_scores(home, away, int(m.group("hg")), int(m.group("ag")), source, confidence,
                                           status=MatchStatus.FINISHED, match_date=match_date)
        except ValueError:
            continue
    return None


class BraveSearchSource:
    """Web search fallback: scrapes scorelines out of result titles and snippets."""

    name = "Brave Search"
    confidence = SourceConfidence.LOW

    def __init__(self, client, api_key: Optional[str], max_results: int = 10):
        self._client = client
        self._api_key = api_key
        self._max_results = max_results

    async def search(self, team: str, opponent: Optional[str] = None,
                     match_date: Optional[str] = None) -> Optional[MatchResult]:
        if not self._api_key:
            return None

        query = " ".join(p for p in (team, "vs" if opponent else None, opponent, "result", match_date) if p)
        data = await get_json(
            self._client, SEARCH_URL, self.name,
            params={"q": query, "count": self._max_results},
            headers={"X-Subscription-Token": self._api_key, "Accept": "application/json"},
        )
        for item in ((data or {}).get("web") or {}).get("results") or []:
            for text in (item.get("title", ""), item.get("description", "")):
                result = extract_score(text, team, opponent, self.name, self.confidence, match_date)
                if result:
                    logger.debug(f"Brave Search: scoreline found in {item.get('url')}")
                    return result
        return None
