from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SelectionBlock:
    anchor: str
    lines: Tuple[str, ...] = ()

    @property
    def all_lines(self) -> Tuple[str, ...]:
        return (self.anchor,) + self.lines


@dataclass(frozen=True)
class Selection:
    team: str
    odds: Optional[float] = None
    market: str = "Unknown"
    opponent: Optional[str] = None
    confidence: float = 0.0
    raw_lines: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["raw_lines"] = list(self.raw_lines)
        return data


@dataclass(frozen=True)
class AnalysisMetadata:
    processing_time_ms: float = 0.0
    text_length: int = 0
    line_count: int = 0
    anchors_found: int = 0
    blocks_discarded: int = 0
    bookmaker: Optional[str] = None
    parse_errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BettingSlipAnalysis:
    is_betting_slip: bool = False
    bet_ref: Optional[str] = None
    match_date: Optional[str] = None
    bet_type: Optional[str] = None
    odds: Optional[float] = None
    stake: Optional[float] = None
    to_return: Optional[float] = None
    boost: Optional[float] = None
    selections: Tuple[Selection, ...] = ()
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["selections"] = [s.to_dict() for s in self.selections]
        data["metadata"]["parse_errors"] = list(self.metadata.parse_errors)
        return data
