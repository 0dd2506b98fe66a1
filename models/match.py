from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional

from models.bet import Selection

MAX_SANE_SCORE = 20


class Winner(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"
    DRAW = "DRAW"


class MatchStatus(str, Enum):
    FINISHED = "FINISHED"
    LIVE = "LIVE"
    SCHEDULED = "SCHEDULED"


class SourceConfidence(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class MatchResult:
    home_team: str
    away_team: str
    score: Optional[str]
    winner: Optional[Winner]
    status: MatchStatus
    source: str
    confidence: SourceConfidence
    match_date: Optional[str] = None
    league: Optional[str] = None

    @classmethod
    def from_scores(cls, home_team: str, away_team: str, home_score: Optional[int], away_score: Optional[int],
                    source: str, confidence: SourceConfidence, status: MatchStatus = MatchStatus.FINISHED,
                    match_date: Optional[str] = None, league: Optional[str] = None) -> "MatchResult":
        """Build a result from raw goals, rejecting impossible scorelines.

        A FINISHED status without both scores is downgraded to SCHEDULED so it
        can never be settled.
        """
        if home_score is None or away_score is None:
            if status is MatchStatus.FINISHED:
                status = MatchStatus.SCHEDULED
            return cls(home_team, away_team, None, None, status, source, confidence, match_date, league)

        home_score, away_score = int(home_score), int(away_score)
        for goals in (home_score, away_score):
            if not 0 <= goals <= MAX_SANE_SCORE:
                raise ValueError(f"Implausible score {home_score}-{away_score}")
        if home_score > away_score:
            winner = Winner.HOME
        elif away_score > home_score:
            winner = Winner.AWAY
        else:
            winner = Winner.DRAW
        return cls(home_team, away_team, f"{home_score}-{away_score}", winner, status, source, confidence,
                   match_date, league)

    @property
    def is_settled(self) -> bool:
        return self.status is MatchStatus.FINISHED and self.score is not None and self.winner is not None


@dataclass(frozen=True)
class EnrichedSelection(Selection):
    result: str = "unknown"
    status: Optional[str] = None
    score: Optional[str] = None
    source: Optional[str] = None
    source_confidence: Optional[str] = None
    response_time_ms: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def merge(cls, selection: Selection, **outcome) -> "EnrichedSelection":
        """Copy a selection's fields and add resolution fields; the original is untouched."""
        base = {f.name: getattr(selection, f.name) for f in fields(Selection)}
        return cls(**base, **outcome)
