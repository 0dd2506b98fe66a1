import logging
import re
import time
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from anchors import CURRENCY_RE, FIXTURE_RE, TOTALS_TOKEN_RE, AnchorClassifier, is_fixture, is_terminator
from catalog import DEFAULT_VOCABULARY, TOTAL_GOALS, UNKNOWN_MARKET, SlipVocabulary, match_market
from format_router import route_text
from models.bet import AnalysisMetadata, BettingSlipAnalysis, Selection, SelectionBlock
from normalize import teams_match

logger = logging.getLogger("parsing")

MIN_ODDS = 1.01
MAX_ODDS = 1000.0

# Decimal odds: two decimals, not glued to a currency sign, a date or a percentage.
ODDS_RE = re.compile(r"(?<![\d.,/£$€])(\d{1,4}\.\d{2})(?![\d./%])")
# A price printed after the selection name: "Liverpool 1.28", "Over 2.5 @ 1.85".
ANCHOR_PRICE_RE = re.compile(r"\s+@?\s*(\d{1,4}\.\d{2})$")

_AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
BET_REF_RE = re.compile(r"\bbet\s*ref(?:erence)?\s*[:#.]?\s*([A-Z0-9]+)", re.I)
STAKE_RE = re.compile(r"\bstake\b\s*[:\-]?\s*[£$€]?\s*" + _AMOUNT, re.I)
TO_RETURN_RE = re.compile(r"\b(?:to\s+return|potential\s+returns?)\b\s*[:\-]?\s*[£$€]?\s*" + _AMOUNT, re.I)
BOOST_RE = re.compile(
    r"[£$€]\s*" + _AMOUNT + r"\s*boost|\bboost(?:ed)?(?:\s+applied)?\s*[:\-]?\s*[£$€]\s*" + _AMOUNT, re.I
)
BARE_AMOUNT_RE = re.compile(r"^[£$€]\s*" + _AMOUNT + r"$")
BET_TYPE_RE = re.compile(
    r"^(?P<type>(?P<folds>\d+)\s*fold(?:\s+(?:acca|accumulator))?|single|double(?!\s+chance)|treble"
    r"|trixie|patent|yankee|accumulator|acca)\b(?P<rest>.*)$",
    re.I,
)
COMBINED_ODDS_RE = re.compile(r"(?<![£$€\d])(\d+(?:\.\d+)?)")
SLIP_MARKER_RE = re.compile(r"\bbet\s*ref(?:erence)?\b|\bstake\b", re.I)

MONTHS = {m: i for i, m in enumerate(
    ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"), start=1)}
NUMERIC_DATE_RE = re.compile(r"(?<!\d)(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})(?!\d)")
TEXT_DATE_RE = re.compile(
    r"\b(\d{1,2})(?:st|nd|rd|th)?\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?,?\s+(\d{2,4})\b", re.I
)
FIXTURE_TAIL_RE = re.compile(r"\s+(?:\d{1,2}:\d{2}|\d{1,2}[/.\-]\d{1,2}(?:[/.\-]\d{2,4})?)$")

_ODDS_WEIGHT = 0.5
_MARKET_WEIGHT = 0.25
_OPPONENT_WEIGHT = 0.25


class ParserState(Enum):
    SCANNING = "scanning"
    BLOCK_OPEN = "block_open"


class SlipStateMachine:
    """Groups OCR lines into selection blocks.

    An anchor closes the open block and opens a new one. A slip-level
    terminator (stake, bet type summary, ...) closes the open block and
    returns to SCANNING. Other lines join the open block, or are ignored
    while scanning.
    """

    def __init__(self, classifier: AnchorClassifier):
        self.classifier = classifier
        self.state = ParserState.SCANNING
        self.anchors_found = 0
        self._anchor: Optional[str] = None
        self._lines: List[str] = []

    def feed(self, line: str) -> Optional[SelectionBlock]:
        """Consume one line; return the block it closed, if any."""
        if self.classifier.is_anchor(line):
            closed = self._close()
            self._anchor = line
            self._lines = []
            self.state = ParserState.BLOCK_OPEN
            self.anchors_found += 1
            return closed
        if is_terminator(line):
            return self._close()
        if self.state is ParserState.BLOCK_OPEN:
            self._lines.append(line)
        return None

    def finish(self) -> Optional[SelectionBlock]:
        return self._close()

    def run(self, lines: Sequence[str]) -> List[SelectionBlock]:
        blocks = [b for b in (self.feed(line) for line in lines) if b is not None]
        last = self.finish()
        if last is not None:
            blocks.append(last)
        return blocks

    def _close(self) -> Optional[SelectionBlock]:
        if self.state is ParserState.SCANNING:
            return None
        block = SelectionBlock(anchor=self._anchor or "", lines=tuple(self._lines))
        self._anchor = None
        self._lines = []
        self.state = ParserState.SCANNING
        return block


def parse_date(text: str) -> Optional[str]:
    """First date found in ``text`` as ISO ``YYYY-MM-DD`` (day-first, as UK slips print it)."""
    m = NUMERIC_DATE_RE.search(text)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), m.group(3)
    else:
        m = TEXT_DATE_RE.search(text)
        if not m:
            return None
        day, month, year = int(m.group(1)), MONTHS[m.group(2).lower()[:3]], m.group(3)
    full_year = int(year) + 2000 if len(year) == 2 else int(year)
    try:
        return date(full_year, month, day).isoformat()
    except ValueError:
        return None


def preprocess_text(text: str, normalize: bool = True) -> List[str]:
    """OCR text as trimmed, non-empty lines with app chrome removed."""
    return route_text(text or "", normalize=normalize)[0]


def has_slip_marker(lines: Sequence[str]) -> bool:
    """A Bet Ref or Stake line marks a slip even when its amount or selections are unreadable."""
    return any(SLIP_MARKER_RE.search(line) for line in lines)


def _amount(value: str) -> float:
    return float(value.replace(",", ""))


def _first_group(m: "re.Match") -> Optional[str]:
    return next((g for g in m.groups() if g), None)


def _clean_fixture_side(side: str) -> str:
    return FIXTURE_TAIL_RE.sub("", side.strip()).strip(" -|")


class SlipParser:
    def __init__(self, vocabulary: SlipVocabulary = DEFAULT_VOCABULARY, bookmaker_hints: Sequence[str] = (),
                 normalize_lines: bool = True):
        self.vocabulary = vocabulary
        self.classifier = AnchorClassifier(vocabulary)
        self.bookmaker_hints = tuple(bookmaker_hints)
        self.normalize_lines = normalize_lines

    def analyze(self, ocr_text) -> BettingSlipAnalysis:
        """Parse OCR text into a betting slip analysis. Never raises."""
        started = time.perf_counter()
        if ocr_text is None:
            text = ""
        elif isinstance(ocr_text, bytes):
            text = ocr_text.decode("utf-8", errors="replace")
        else:
            text = str(ocr_text)

        line_count = 0
        try:
            lines, bookmaker = route_text(text, self.bookmaker_hints, self.normalize_lines)
            line_count = len(lines)
            errors: List[str] = []

            fields = self.extract_slip_fields(lines, errors)
            machine = SlipStateMachine(self.classifier)
            blocks = machine.run(lines)

            selections = []
            for block in blocks:
                selection = self.parse_block(block, errors)
                if selection is None:
                    logger.debug(f"Discarded block without odds: {list(block.all_lines[:3])}")
                    continue
                logger.debug(f"Parsed selection: {selection.team} @ {selection.odds}")
                selections.append(selection)

            is_slip = bool(selections) or has_slip_marker(lines)
            metadata = AnalysisMetadata(
                processing_time_ms=(time.perf_counter() - started) * 1000.0,
                text_length=len(text),
                line_count=line_count,
                anchors_found=machine.anchors_found,
                blocks_discarded=len(blocks) - len(selections),
                bookmaker=bookmaker,
                parse_errors=tuple(errors),
            )
            if is_slip:
                logger.info(f"Betting slip analysis complete: {len(selections)} selections found")
            return BettingSlipAnalysis(is_betting_slip=is_slip, selections=tuple(selections), metadata=metadata,
                                       **fields)
        except Exception as e:
            logger.exception(f"Error analyzing betting slip: {e}")
            return BettingSlipAnalysis(
                is_betting_slip=False,
                metadata=AnalysisMetadata(
                    processing_time_ms=(time.perf_counter() - started) * 1000.0,
                    text_length=len(text),
                    line_count=line_count,
                    parse_errors=(str(e),),
                ),
            )

    def extract_slip_fields(self, lines: Sequence[str], errors: List[str]) -> Dict[str, object]:
        """Slip-level markers, read line by line independently of selection blocks."""
        fields: Dict[str, object] = {
            "bet_ref": None, "match_date": None, "bet_type": None, "odds": None,
            "stake": None, "to_return": None, "boost": None,
        }
        placed_date = None
        first_date = None

        for i, line in enumerate(lines):
            lowered = line.lower()
            next_line = lines[i + 1] if i + 1 < len(lines) else ""

            m = BET_REF_RE.search(line)
            if m and fields["bet_ref"] is None:
                fields["bet_ref"] = m.group(1)

            found = parse_date(line)
            if found:
                if "bet placed" in lowered and placed_date is None:
                    placed_date = found
                elif first_date is None and not is_fixture(line):
                    first_date = found
            elif "bet placed" in lowered and (NUMERIC_DATE_RE.search(line) or TEXT_DATE_RE.search(line)):
                errors.append(f"Unreadable date: {line}")

            if "stake" in lowered and fields["stake"] is None:
                fields["stake"] = self._marker_amount(STAKE_RE, line, next_line, "stake", errors)

            if ("to return" in lowered or "potential return" in lowered) and fields["to_return"] is None:
                fields["to_return"] = self._marker_amount(TO_RETURN_RE, line, next_line, "return", errors)

            if "boost" in lowered and fields["boost"] is None:
                m = BOOST_RE.search(line)
                if m:
                    fields["boost"] = _amount(_first_group(m))

            m = BET_TYPE_RE.match(line)
            if m and fields["bet_type"] is None:
                folds = m.group("folds")
                fields["bet_type"] = f"{int(folds)} Fold" if folds else m.group("type").title()
                odds = COMBINED_ODDS_RE.search(m.group("rest"))
                if odds:
                    fields["odds"] = float(odds.group(1))

        fields["match_date"] = placed_date or first_date
        return fields

    @staticmethod
    def _marker_amount(regex: "re.Pattern", line: str, next_line: str, label: str,
                       errors: List[str]) -> Optional[float]:
        m = regex.search(line)
        if m:
            return _amount(m.group(1))
        # OCR often splits "Stake" and "£10.00" onto consecutive lines.
        m = BARE_AMOUNT_RE.match(next_line.strip())
        if m:
            return _amount(m.group(1))
        errors.append(f"No {label} amount on line: {line}")
        return None

    def parse_block(self, block: SelectionBlock, errors: Optional[List[str]] = None) -> Optional[Selection]:
        """Turn a block into a Selection, or None when no odds can be read."""
        if errors is None:
            errors = []
        odds, anchor_text = self._find_odds(block, errors)
        if odds is None:
            return None

        totals = TOTALS_TOKEN_RE.match(anchor_text)
        if totals:
            team = totals.group("token").capitalize()
        else:
            team = anchor_text

        if team.lower() in ("over", "under"):
            market = TOTAL_GOALS
        else:
            market = next((m for m in (match_market(line) for line in block.lines) if m), UNKNOWN_MARKET)

        opponent = self._find_opponent(team, block.lines)

        confidence = _ODDS_WEIGHT
        if market != UNKNOWN_MARKET:
            confidence += _MARKET_WEIGHT
        if opponent:
            confidence += _OPPONENT_WEIGHT

        return Selection(
            team=team,
            odds=odds,
            market=market,
            opponent=opponent,
            confidence=round(confidence, 2),
            raw_lines=block.all_lines,
        )

    def _find_odds(self, block: SelectionBlock, errors: List[str]) -> Tuple[Optional[float], str]:
        anchor = block.anchor.strip()
        for line in block.lines:
            if CURRENCY_RE.search(line):
                continue
            for m in ODDS_RE.finditer(line):
                value = float(m.group(1))
                if not MIN_ODDS <= value <= MAX_ODDS:
                    errors.append(f"Odds {m.group(1)} out of range on line: {line}")
                    continue
                return value, anchor

        # Only a trailing price counts on the anchor; "Over 2.50 Goals" has a goal line, not odds.
        m = ANCHOR_PRICE_RE.search(anchor)
        totals = TOTALS_TOKEN_RE.match(anchor)
        if m is None or CURRENCY_RE.search(anchor) or (totals and m.start(1) < totals.end()):
            return None, anchor
        value = float(m.group(1))
        if not MIN_ODDS <= value <= MAX_ODDS:
            errors.append(f"Odds {m.group(1)} out of range on line: {anchor}")
            return None, anchor
        return value, anchor[:m.start()].strip()

    def _find_opponent(self, team: str, lines: Sequence[str]) -> Optional[str]:
        threshold = self.vocabulary.fuzzy_threshold
        for line in lines:
            m = FIXTURE_RE.match(line)
            if not m:
                continue
            home, away = _clean_fixture_side(m.group("home")), _clean_fixture_side(m.group("away"))
            if teams_match(team, home, threshold):
                return away or None
            if teams_match(team, away, threshold):
                return home or None
            return None
        return None


_default_parser = SlipParser()


def analyze(ocr_text) -> BettingSlipAnalysis:
    return _default_parser.analyze(ocr_text)
