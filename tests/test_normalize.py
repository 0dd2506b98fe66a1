"""Tests for team name normalization and matching."""

from normalize import normalize_team_name, teams_match


class TestNormalizeTeamName:
    def test_strips_club_suffix(self):
        assert normalize_team_name("Liverpool FC") == "liverpool"

    def test_strips_accents(self):
        assert normalize_team_name("Atlético Madrid") == "atletico madrid"

    def test_expands_abbreviation(self):
        assert normalize_team_name("MUFC") == "manchester united"
        assert normalize_team_name("Man Utd") == "manchester united"

    def test_drops_punctuation(self):
        assert normalize_team_name("Nott'm Forest") == "nottm forest"
        assert normalize_team_name("Brighton & Hove Albion") == "brighton hove albion"

    def test_empty(self):
        assert normalize_team_name(None) == ""
        assert normalize_team_name("   ") == ""


class TestTeamsMatch:
    def test_exact_after_normalization(self):
        assert teams_match("Liverpool FC", "liverpool")

    def test_whole_word_containment(self):
        assert teams_match("Tottenham", "Tottenham Hotspur")
        assert teams_match("Wolverhampton Wanderers", "Wanderers")

    def test_ocr_noise(self):
        assert teams_match("Liverpoo1", "Liverpool")

    def test_city_rivals_do_not_match(self):
        assert not teams_match("Manchester City", "Manchester United")
        assert not teams_match("Man City", "Man Utd")

    def test_unrelated(self):
        assert not teams_match("Arsenal", "Chelsea")

    def test_empty_never_matches(self):
        assert not teams_match("", "Liverpool")
        assert not teams_match(None, None)
