"""
Unit tests for the name screener: classification, aggregation and result views
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from config_manager import MatchingConfig
from screener import (
    MatchType,
    NameScreener,
    ScreeningSubject,
    TOP_MATCHES,
    aggregate_candidates,
    classify,
    get_names_to_screen,
    round_score,
    score_against_watchlist,
    screen,
)


@pytest.fixture
def watchlist():
    return [
        {"id": 1, "name": "John Smith", "reason": "Fraud"},
        {"id": 2, "name": "Anna Lee"},
        {"id": 3, "name": "Mohammed Al-Rashid"},
        {"id": 4, "name": "Jon Smyth"},
        {"id": 5, "name": "Zhang Wei"},
    ]


class TestClassify:
    """Tests for match band classification"""

    @pytest.mark.parametrize("score,expected", [
        (1.0, MatchType.EXACT_MATCH),
        (0.90, MatchType.EXACT_MATCH),
        (0.89, MatchType.POSSIBLE_MATCH),
        (0.75, MatchType.POSSIBLE_MATCH),
        (0.74, MatchType.NO_MATCH),
        (0.0, MatchType.NO_MATCH),
    ])
    def test_default_bands(self, score, expected):
        assert classify(score) == expected

    def test_configured_bands(self):
        screener = NameScreener(MatchingConfig(exact_match_threshold=0.95, possible_match_threshold=0.5))
        assert screener.classify(0.94) == MatchType.POSSIBLE_MATCH
        assert screener.classify(0.5) == MatchType.POSSIBLE_MATCH
        assert screener.classify(0.49) == MatchType.NO_MATCH

    def test_match_type_is_plain_string(self):
        assert MatchType.EXACT_MATCH == "EXACT_MATCH"


class TestRoundScore:
    """Tests for presentation rounding"""

    @pytest.mark.parametrize("score,expected", [
        (0.875, 0.88),
        (0.8, 0.8),
        (1.0, 1.0),
        (0.0, 0.0),
        (0.7777777, 0.78),
        (0.3333333, 0.33),
    ])
    def test_half_up(self, score, expected):
        assert round_score(score) == expected


class TestNamesToScreen:
    """Tests for collecting names from a subject"""

    def test_full_name_then_aliases(self):
        subject = ScreeningSubject(full_name="John Smith", aliases=["Johnny", "", None, "J. Smith"])
        assert get_names_to_screen(subject) == ["John Smith", "Johnny", "J. Smith"]

    def test_aliases_only(self):
        subject = ScreeningSubject(full_name=None, aliases=["Ann Lee"])
        assert get_names_to_screen(subject) == ["Ann Lee"]

    def test_no_names_is_empty_sentinel(self):
        assert get_names_to_screen(ScreeningSubject(full_name=None, aliases=[])) == [""]
        assert get_names_to_screen(ScreeningSubject(full_name="", aliases=["", None])) == [""]

    def test_from_dict(self):
        subject = ScreeningSubject.from_dict(
            {"fullName": "John Smith", "aliases": ["JS"], "country": "US"},
            default_request_id="req-9",
        )
        assert subject.request_id == "req-9"
        assert subject.full_name == "John Smith"
        assert subject.aliases == ["JS"]
        assert subject.country == "US"

    def test_from_dict_ignores_non_list_aliases(self):
        subject = ScreeningSubject.from_dict({"requestId": "r1", "aliases": "John"})
        assert subject.request_id == "r1"
        assert subject.aliases == []


class TestAggregation:
    """Tests for per-candidate max-score aggregation"""

    def test_scores_sorted_descending(self, watchlist):
        ranked = score_against_watchlist("John Smith", watchlist)
        scores = [score for _, score in ranked]
        assert scores == sorted(scores, reverse=True)
        assert ranked[0][0]["id"] == 1

    def test_one_candidate_per_id(self, watchlist):
        ranked = aggregate_candidates(["John Smith", "Anna Lee", "Zhang Wei"], watchlist)
        assert sorted(c.watchlist_entry["id"] for c in ranked) == [1, 2, 3, 4, 5]

    def test_keeps_highest_score_and_its_name(self, watchlist):
        ranked = aggregate_candidates(["Zhang Wei", "Anna Lee"], watchlist)
        by_id = {c.watchlist_entry["id"]: c for c in ranked}
        assert by_id[2].score == 1
        assert by_id[2].matched_input_name == "Anna Lee"
        assert by_id[5].score == 1
        assert by_id[5].matched_input_name == "Zhang Wei"

    def test_tie_keeps_first_name(self):
        ranked = aggregate_candidates(["Smith John", "John Smith"], [{"id": 1, "name": "John Smith"}])
        assert ranked[0].matched_input_name == "Smith John"

    def test_duplicate_ids_merge(self):
        entries = [{"id": 7, "name": "Zed"}, {"id": 7, "name": "John Smith"}]
        ranked = aggregate_candidates(["John Smith"], entries)
        assert len(ranked) == 1
        assert ranked[0].score == 1
        # entries are ranked per name before the fold, so the exact match is seen first
        assert ranked[0].watchlist_entry["name"] == "John Smith"

    def test_empty_watchlist(self):
        assert aggregate_candidates(["John Smith"], []) == []


class TestScreen:
    """Tests for the detailed and consolidated views"""

    def test_reordered_name_is_exact_match(self):
        result = screen(["Smith John"], [{"id": 1, "name": "John Smith"}], request_id="req-a")
        assert result.consolidated["screeningResult"] == "EXACT_MATCH"
        assert result.consolidated["bestMatch"] == {"id": 1, "name": "John Smith", "score": 1}
        assert result.consolidated["requestId"] == "req-a"

    def test_spelling_variant_is_possible_match(self):
        result = screen(["John Smith"], [{"id": 1, "name": "Jon Smyth"}])
        best = result.consolidated["bestMatch"]
        assert 0.75 < best["score"] < 0.90
        assert result.consolidated["screeningResult"] == "POSSIBLE_MATCH"

    def test_empty_watchlist(self):
        result = screen(["John Smith"], [])
        assert result.consolidated["bestMatch"] is None
        assert result.consolidated["screeningResult"] == "NO_MATCH"
        assert result.detailed["top3Matches"] == []
        assert result.detailed["bestMatch"] == {
            "id": None, "name": None, "score": 0, "matchType": "NO_MATCH"
        }

    def test_empty_name_sentinel_is_no_match(self, watchlist):
        names = get_names_to_screen(ScreeningSubject(full_name=None, aliases=[]))
        result = screen(names, watchlist)
        assert result.consolidated["screeningResult"] == "NO_MATCH"
        assert all(m["score"] == 0 for m in result.detailed["top3Matches"])
        assert result.detailed["allNamesScreened"] == [{"raw": "", "normalized": ""}]

    def test_best_alias_wins(self):
        subject = ScreeningSubject(request_id="req-e", aliases=["Ann Lee", "Anna Li"])
        result = NameScreener(MatchingConfig()).screen_subject(subject, [{"id": 2, "name": "Anna Lee"}])
        top = result.detailed["top3Matches"]
        assert len(top) == 1
        # "ann lee" is one insertion from "anna lee"; "anna li" is two edits away
        assert top[0]["matchedInputName"] == "Ann Lee"
        assert top[0]["score"] == 0.88
        assert top[0]["matchType"] == "POSSIBLE_MATCH"

    def test_top_three_only(self, watchlist):
        result = screen(["John Smith"], watchlist)
        top = result.detailed["top3Matches"]
        assert len(top) == 3
        assert [m["id"] for m in top[:2]] == [1, 4]
        assert [m["score"] for m in top] == sorted((m["score"] for m in top), reverse=True)

    def test_top_matches_fixed_at_three(self, watchlist):
        result = NameScreener(MatchingConfig()).screen(["John Smith"], watchlist)
        assert TOP_MATCHES == 3
        assert len(watchlist) == 5
        assert len(result.detailed["top3Matches"]) == TOP_MATCHES

    def test_detailed_view_shape(self, watchlist):
        result = screen(["Smith, John", "J. Smith"], watchlist, primary_name="Smith, John")
        detailed = result.detailed
        assert detailed["rawName"] == "Smith, John"
        assert detailed["normalizedName"] == "smith john"
        assert detailed["allNamesScreened"] == [
            {"raw": "Smith, John", "normalized": "smith john"},
            {"raw": "J. Smith", "normalized": "j smith"},
        ]
        assert detailed["bestMatch"]["id"] == 1
        assert detailed["bestMatch"]["matchType"] == "EXACT_MATCH"
        for match in detailed["top3Matches"]:
            assert set(match) == {"id", "name", "score", "matchedInputName", "matchType"}

    def test_screen_subject_uses_subject_request_id(self, watchlist):
        subject = ScreeningSubject(request_id="from-subject", full_name="Anna Lee")
        result = NameScreener(MatchingConfig()).screen_subject(subject, watchlist, request_id="from-path")
        assert result.consolidated["requestId"] == "from-subject"

    def test_screen_subject_falls_back_to_caller_request_id(self, watchlist):
        subject = ScreeningSubject(full_name="Anna Lee")
        result = NameScreener(MatchingConfig()).screen_subject(subject, watchlist, request_id="from-path")
        assert result.consolidated["requestId"] == "from-path"
        assert result.detailed["rawName"] == "Anna Lee"

    def test_timestamp_is_iso(self):
        result = screen(["John Smith"], [])
        assert datetime.fromisoformat(result.consolidated["timestamp"]).tzinfo is not None

    def test_passthrough_fields_not_in_views(self, watchlist):
        result = screen(["John Smith"], watchlist)
        assert "reason" not in result.consolidated["bestMatch"]

    def test_to_dict(self):
        result = screen(["John Smith"], [{"id": 1, "name": "John Smith"}])
        assert set(result.to_dict()) == {"detailed", "consolidated"}

    def test_results_are_frozen(self):
        result = screen(["John Smith"], [])
        with pytest.raises(AttributeError):
            result.detailed = {}
