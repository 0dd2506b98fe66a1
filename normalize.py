import re
import unicodedata
from typing import Optional

from rapidfuzz import fuzz

# Whole-word club designations that carry no identity on a slip or scoreboard.
CLUB_SUFFIXES = ("fc", "afc", "lfc", "cfc", "ufc", "ssc", "sc", "cf", "ac", "as", "sv", "fk", "bk", "sk")

CLUB_ABBREVIATIONS = {
    "mufc": "manchester united",
    "mcfc": "manchester city",
    "thfc": "tottenham",
    "man utd": "manchester united",
    "man city": "manchester city",
}

_SUFFIX_RE = re.compile(r"\b(?:%s)\b" % "|".join(CLUB_SUFFIXES))
_ABBREV_RE = re.compile(r"\b(?:%s)\b" % "|".join(re.escape(k) for k in CLUB_ABBREVIATIONS))


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_team_name(name: Optional[str]) -> str:
    """Reduce a team name to a lower-case comparable key.

    "Liverpool FC" -> "liverpool", "Atlético Madrid" -> "atletico madrid",
    "MUFC" -> "manchester united".
    """
    if not name:
        return ""
    text = _strip_accents(name).lower()
    text = re.sub(r"['’.]", "", text)
    text = re.sub(r"[^a-z0-9 ]+", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    text = _ABBREV_RE.sub(lambda m: CLUB_ABBREVIATIONS[m.group(0)], text)
    text = _SUFFIX_RE.sub("", text)
    return re.sub(r"\s+", " ", text).strip()


def _contains_words(haystack: str, needle: str) -> bool:
    return re.search(rf"(?:^|\s){re.escape(needle)}(?:\s|$)", haystack) is not None


def teams_match(a: Optional[str], b: Optional[str], threshold: int = 80) -> bool:
    """True when two team strings refer to the same club, tolerating OCR noise."""
    na, nb = normalize_team_name(a), normalize_team_name(b)
    if not na or not nb:
        return False
    if na == nb or _contains_words(na, nb) or _contains_words(nb, na):
        return True
    # Word-by-word so "manchester city" never fuzzes into "manchester united".
    wa, wb = na.split(), nb.split()
    if len(wa) != len(wb):
        return False
    return all(fuzz.ratio(x, y) >= threshold for x, y in zip(wa, wb))
