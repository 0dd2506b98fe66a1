"""Tests for chat message rendering."""

from formatting import format_not_a_slip, format_slip_summary, split_message
from models.bet import AnalysisMetadata, BettingSlipAnalysis, Selection
from models.match import EnrichedSelection


def _analysis(selections=(), **fields):
    return BettingSlipAnalysis(is_betting_slip=True, selections=tuple(selections),
                               metadata=AnalysisMetadata(line_count=10, bookmaker="bet365"), **fields)


LIVERPOOL = Selection("Liverpool", 1.28, "Full Time Result", "Bournemouth", 1.0)
ARSENAL = Selection("Arsenal", 2.10, "Full Time Result", "Chelsea", 1.0)


def test_slip_fields_are_listed():
    text = format_slip_summary(_analysis(
        [LIVERPOOL], bet_ref="AB123", match_date="2024-03-02", bet_type="2 Fold", odds=2.69,
        stake=10.0, to_return=26.88, boost=2.5,
    ))

    assert "**Bookmaker:** bet365" in text
    assert "`AB123`" in text
    assert "**Match Date:** 2024-03-02" in text
    assert "**Bet Type:** 2 Fold @ 2.69" in text
    assert "**Stake:** £10.00" in text
    assert "**To Return:** £26.88" in text
    assert "**Boost:** £2.50" in text
    assert "£16.88 (168.8% ROI)" in text
    assert "1. Liverpool @ 1.28" in text
    assert "Full Time Result - vs Bournemouth" in text


def test_resolved_selections_show_outcomes():
    won = EnrichedSelection.merge(LIVERPOOL, result="win", status="FINISHED", score="3-1", source="ESPN")
    lost = EnrichedSelection.merge(ARSENAL, result="loss", status="FINISHED", score="0-1", source="ESPN")
    analysis = _analysis([LIVERPOOL, ARSENAL])

    text = format_slip_summary(analysis, [won, lost])

    assert "1. Liverpool @ 1.28 ✅ **WIN**" in text
    assert "2. Arsenal @ 2.10 ❌ **LOSS**" in text
    assert "Score: 3-1" in text
    assert "1W - 1L" in text
    assert "LOSING BET" in text


def test_all_wins_is_a_winning_bet():
    won = EnrichedSelection.merge(LIVERPOOL, result="win", status="FINISHED", score="3-1")
    assert "WINNING BET" in format_slip_summary(_analysis([LIVERPOOL]), [won])


def test_not_found_marker():
    missing = EnrichedSelection.merge(LIVERPOOL, result="unknown", status="not_found")
    assert "🔍 **NO RESULT FOUND**" in format_slip_summary(_analysis([LIVERPOOL]), [missing])


def test_partial_read_warning():
    partial = Selection("Liverpool", 1.50, confidence=0.5)
    assert "Partial read" in format_slip_summary(_analysis([partial]))
    assert "Partial read" not in format_slip_summary(_analysis([LIVERPOOL]))


def test_slip_without_selections():
    text = format_slip_summary(_analysis(stake=5.0))
    assert "no selections could be read" in text


def test_not_a_slip():
    analysis = BettingSlipAnalysis(metadata=AnalysisMetadata(line_count=4))
    assert "Read 4 lines" in format_not_a_slip(analysis)
    assert "couldn't find a betting slip" in format_not_a_slip()


class TestSplitMessage:
    def test_short_text_is_one_chunk(self):
        assert split_message("hello\nworld") == ["hello\nworld"]

    def test_splits_on_line_boundaries(self):
        assert split_message("line1\nline2", limit=7) == ["line1", "line2"]

    def test_hard_splits_overlong_lines(self):
        chunks = split_message("x" * 25, limit=10)
        assert chunks == ["x" * 10, "x" * 10, "x" * 5]

    def test_every_chunk_fits(self):
        text = "\n".join(f"{i}. Selection line with some detail" for i in range(200))
        chunks = split_message(text)
        assert all(len(c) <= 2000 for c in chunks)
        assert "\n".join(chunks) == text
