"""Tests for OCR line routing and cleanup."""

from format_router import detect_bookmaker, normalize_headers_footers, route_text, split_lines


def test_split_lines_trims_and_collapses():
    assert split_lines("  Liverpool   FC \n\n\t1.28  \n") == ["Liverpool FC", "1.28"]


def test_noise_lines_are_dropped():
    lines = ["My Bets", "Cash Out £12.00", "Liverpool", "14:05", "----", "Page 1 of 2", "1.28"]
    assert normalize_headers_footers(lines) == ["Liverpool", "1.28"]


def test_detect_bookmaker_tolerates_spacing():
    assert detect_bookmaker("Welcome to SkyBet", ["bet365", "Sky Bet"]) == "Sky Bet"
    assert detect_bookmaker("nothing here", ["bet365"]) is None


def test_route_text_without_normalization():
    lines, bookmaker = route_text("bet365\nMy Bets\nLiverpool", ["bet365"], normalize=False)
    assert lines == ["bet365", "My Bets", "Liverpool"]
    assert bookmaker == "bet365"
