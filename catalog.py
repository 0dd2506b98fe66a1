import re
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, Optional, Pattern, Tuple

from normalize import normalize_team_name

FULL_TIME_RESULT = "Full Time Result"
TOTAL_GOALS = "Total Goals"
UNKNOWN_MARKET = "Unknown"

# First match wins, so the more specific phrasings come first.
MARKET_PATTERNS: Tuple[Tuple[Pattern, str], ...] = tuple(
    (re.compile(p, re.I), name) for p, name in (
        (r"\bhalf[\s-]*time\s*/\s*full[\s-]*time\b", "Half Time/Full Time"),
        (r"\bhalf[\s-]*time\s+result\b", "Half Time Result"),
        (r"\bfull[\s-]*time\s+result\b|\bmatch\s+result\b|\bmatch\s+betting\b|\b1x2\b", FULL_TIME_RESULT),
        (r"\bdouble\s+chance\b", "Double Chance"),
        (r"\bdraw\s+no\s+bet\b", "Draw No Bet"),
        (r"\bboth\s+teams\b|\bbtts\b", "Both Teams To Score"),
        (r"\bcorrect\s+score\b", "Correct Score"),
        (r"\bfirst\s+goal\s*scorer\b", "First Goalscorer"),
        (r"\banytime\s+goal\s*scorer\b", "Anytime Goalscorer"),
        (r"\basian\s+handicap\b|\bhandicap\b", "Handicap"),
        (r"\bover\s*/\s*under\b|\btotal\s+goals\b|\b(?:over|under)\s+\d+(?:\.\d+)?\b|\bgoals\s+(?:over|under)\b",
         TOTAL_GOALS),
    )
)


def match_market(line: str) -> Optional[str]:
    """Canonical market name described by ``line``, if any."""
    for pattern, name in MARKET_PATTERNS:
        if pattern.search(line):
            return name
    return None

# Single keywords are enough: anchors are matched by exact, prefix, suffix or fuzzy word.
DEFAULT_TEAMS = (
    "liverpool", "manchester", "chelsea", "arsenal", "tottenham", "spurs", "newcastle",
    "barcelona", "madrid", "bayern", "juventus", "milan", "inter", "napoli",
    "paris", "psg", "lyon", "marseille", "monaco", "lille", "nice",
    "dortmund", "leipzig", "leverkusen", "frankfurt", "wolfsburg",
    "atletico", "sevilla", "valencia", "villarreal", "betis", "sociedad",
    "atalanta", "roma", "lazio", "fiorentina", "torino", "bologna",
    "birmingham", "coventry", "cardiff", "swansea", "leeds", "norwich",
    "leicester", "brighton", "crystal palace", "west ham", "aston villa", "villa",
    "burnley", "brentford", "fulham", "wolves", "everton", "southampton",
    "bournemouth", "nottingham forest", "forest", "ipswich", "sunderland",
    "braga", "porto", "sporting", "benfica", "vitoria", "guimaraes",
    "celtic", "rangers", "ajax", "psv", "feyenoord",
)

DEFAULT_MARKET_TOKENS = (
    "yes", "no", "draw", "over", "under", "both", "either",
    "home", "away", "first", "last", "anytime", "correct",
)


@dataclass(frozen=True)
class SlipVocabulary:
    """Dictionaries the anchor classifier and slip parser read from.

    Built once and shared; tests substitute smaller vocabularies with
    ``with_teams`` or ``dataclasses.replace``.
    """

    teams: FrozenSet[str]
    market_tokens: FrozenSet[str]
    fuzzy_threshold: int = 80
    min_anchor_length: int = 2
    max_anchor_length: int = 50

    @classmethod
    def build(cls, teams: Iterable[str], market_tokens: Iterable[str] = DEFAULT_MARKET_TOKENS,
              **options) -> "SlipVocabulary":
        normalized = frozenset(t for t in (normalize_team_name(x) for x in teams) if t)
        tokens = frozenset(m.strip().lower() for m in market_tokens if m.strip())
        return cls(teams=normalized, market_tokens=tokens, **options)

    def with_teams(self, teams: Iterable[str]) -> "SlipVocabulary":
        return replace(self, teams=frozenset(normalize_team_name(t) for t in teams if normalize_team_name(t)))

    def with_threshold(self, threshold: int) -> "SlipVocabulary":
        return replace(self, fuzzy_threshold=threshold)


DEFAULT_VOCABULARY = SlipVocabulary.build(DEFAULT_TEAMS)
