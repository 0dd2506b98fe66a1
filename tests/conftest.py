"""
tests/conftest.py

Purpose:
    Shared pytest bootstrap: puts the repository root on sys.path and
    provides small vocabularies and scripted match sources.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from catalog import SlipVocabulary  # noqa: E402
from models.match import MatchResult, SourceConfidence  # noqa: E402


class ScriptedSource:
    """Match source double: returns a fixed result (or raises) after an optional delay."""

    def __init__(self, name: str, result: Optional[MatchResult] = None, error: Optional[Exception] = None,
                 delay: float = 0.0, confidence: SourceConfidence = SourceConfidence.HIGH) -> None:
        self.name = name
        self.confidence = confidence
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[tuple] = []

    async def search(self, team, opponent=None, match_date=None):
        self.calls.append((team, opponent, match_date))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def small_vocabulary() -> SlipVocabulary:
    return SlipVocabulary.build(["liverpool", "arsenal", "bournemouth", "barcelona", "spurs", "chelsea"])


@pytest.fixture
def liverpool_win() -> MatchResult:
    return MatchResult.from_scores("Liverpool", "Bournemouth", 3, 1, "ESPN", SourceConfidence.HIGH,
                                   match_date="2024-03-02")
