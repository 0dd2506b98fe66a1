import logging
import re
from enum import Enum

from rapidfuzz import fuzz, process

from catalog import DEFAULT_VOCABULARY, SlipVocabulary, match_market
from normalize import normalize_team_name

logger = logging.getLogger("anchors")

PURE_ODDS_RE = re.compile(r"^\d+\.\d{2}$")
CURRENCY_RE = re.compile(r"[£$€]\s?\d")
FIXTURE_RE = re.compile(r"^(?P<home>.+?)\s+(?:v|vs\.?|@)\s+(?P<away>(?!\d+\.\d+$).+)$", re.I)
TOTALS_TOKEN_RE = re.compile(r"^(?P<token>over|under)\s+\d+(?:\.\d+)?\b", re.I)

# Slip-level lines: they close any open selection block and are never attached to one.
TERMINATOR_RE = re.compile(
    r"^(?:total\s+)?stake\b|\bto\s+return\b|\bpotential\s+returns?\b|\bbet\s*ref\b|\bbet\s+placed\b"
    r"|^[£$€]\s*\d[\d.,]*\s*boost\b|^\d+\s*fold\b|\bfold\s+(?:acca|accumulator)\b"
    r"|^(?:single|double(?!\s+chance)|treble|trixie|patent|yankee|lucky\s+\d+|accumulator|acca)\b",
    re.I,
)


class Anchor(str, Enum):
    TEAM_NAME = "team-name"
    MARKET_TOKEN = "market-token"
    NONE = "none"


def is_terminator(line: str) -> bool:
    return TERMINATOR_RE.search(line.strip()) is not None


def is_fixture(line: str) -> bool:
    return FIXTURE_RE.match(line.strip()) is not None


class AnchorClassifier:
    """Decides which OCR lines open a new selection block.

    Team matching accepts OCR-mangled names ("Sp0rs"); a block opened by a
    spurious anchor is discarded later when it has no odds.
    ``vocabulary.fuzzy_threshold`` sets the minimum rapidfuzz score.
    """

    def __init__(self, vocabulary: SlipVocabulary = DEFAULT_VOCABULARY):
        self.vocabulary = vocabulary
        self._single_word_teams = sorted(t for t in vocabulary.teams if " " not in t)
        self._teams = sorted(vocabulary.teams)

    def classify(self, line: str) -> Anchor:
        text = (line or "").strip()
        vocab = self.vocabulary
        if not vocab.min_anchor_length <= len(text) <= vocab.max_anchor_length:
            return Anchor.NONE
        if PURE_ODDS_RE.match(text) or CURRENCY_RE.search(text):
            return Anchor.NONE
        if is_fixture(text) or is_terminator(text):
            return Anchor.NONE

        lowered = text.lower()
        if lowered in vocab.market_tokens or TOTALS_TOKEN_RE.match(text):
            return Anchor.MARKET_TOKEN
        if match_market(text):
            return Anchor.NONE

        if self._is_team(normalize_team_name(text)):
            return Anchor.TEAM_NAME
        return Anchor.NONE

    def is_anchor(self, line: str) -> bool:
        return self.classify(line) is not Anchor.NONE

    def _is_team(self, normalized: str) -> bool:
        if not normalized:
            return False
        for team in self._teams:
            if normalized == team or normalized.startswith(team + " ") or normalized.endswith(" " + team):
                return True

        threshold = self.vocabulary.fuzzy_threshold
        if threshold >= 100 or not self._teams:
            return False
        best = process.extractOne(normalized, self._teams, scorer=fuzz.ratio, score_cutoff=threshold)
        if best:
            logger.debug(f"Fuzzy anchor '{normalized}' ~ '{best[0]}' ({best[1]:.0f})")
            return True
        if not self._single_word_teams:
            return False
        for word in normalized.split():
            if len(word) < 4 or word.isdigit():
                continue
            best = process.extractOne(word, self._single_word_teams, scorer=fuzz.ratio, score_cutoff=threshold)
            if best:
                logger.debug(f"Fuzzy anchor word '{word}' ~ '{best[0]}' ({best[1]:.0f})")
                return True
        return False
