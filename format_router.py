import re
from typing import List, Optional, Sequence, Tuple

# App chrome and footer lines that never belong to a selection.
NOISE_PATTERNS = [
    r"(?i)^page \d+ of \d+$",
    r"(?i)^screenshot.*$",
    r"(?i)^cash\s*out\b.*$",
    r"(?i)^(my bets|open bets|settled bets|bet slip|betslip)$",
    r"(?i)^(edit bet|reuse selections|share bet|live stream)$",
    r"^\d{1,2}:\d{2}$",
    r"^[\W_]+$",
]

_NOISE_RE = [re.compile(p) for p in NOISE_PATTERNS]


def normalize_headers_footers(lines: Sequence[str]) -> List[str]:
    return [line for line in lines if not any(p.search(line) for p in _NOISE_RE)]


def split_lines(text: str) -> List[str]:
    lines = (re.sub(r"\s+", " ", raw).strip() for raw in text.splitlines())
    return [line for line in lines if line]


def detect_bookmaker(text: str, hints: Sequence[str]) -> Optional[str]:
    for h in hints:
        pattern = r"\b" + r"\s*".join(re.escape(part) for part in h.split()) + r"\b"
        if re.search(pattern, text, re.I):
            return h
    return None


def route_text(text: str, hints: Sequence[str] = (), normalize: bool = True) -> Tuple[List[str], Optional[str]]:
    # Split into trimmed lines, drop app chrome (optional), detect bookmaker branding.
    lines = split_lines(text)
    cleaned = normalize_headers_footers(lines) if normalize else lines
    return cleaned, detect_bookmaker(text, hints)
