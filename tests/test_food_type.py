"""Tests for keyword-based food-type resolution."""

from __future__ import annotations

import pytest

from freshscan.analysis.food_type import match_scores, resolve_food_type, title_case
from freshscan.analysis.results import RankedCandidate
from freshscan.ml.image_classifier import CandidateSource


def _ranked(*entries: tuple[str, float]) -> list[RankedCandidate]:
    return [RankedCandidate(label, raw * 1.2, raw, CandidateSource.PRIMARY) for label, raw in entries]


class TestResolveFoodType:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("fresh green apple", "Apple"),
            ("Granny Smith", "Apple"),
            ("banana", "Banana"),
            ("orange", "Orange"),
            ("lemon, citrus", "Orange"),
            ("bell pepper", "Bell Pepper"),
            ("head cabbage", "Leafy Greens"),
            ("cucumber, cuke", "Cucumber"),
        ],
    )
    def test_single_label(self, label: str, expected: str) -> None:
        assert resolve_food_type(_ranked((label, 0.6))) == expected

    def test_no_match_defaults_to_fresh_produce(self) -> None:
        assert resolve_food_type(_ranked(("sports car", 0.9), ("racer", 0.4))) == "Fresh Produce"

    def test_empty_list_defaults_to_fresh_produce(self) -> None:
        assert resolve_food_type([]) == "Fresh Produce"

    def test_primary_keyword_outweighs_secondary(self) -> None:
        # banana: primary keyword (+0.2); apple: secondary keyword "fruit" (+0.1)
        assert resolve_food_type(_ranked(("banana", 0.5), ("fruit", 0.4))) == "Banana"

    def test_more_keyword_hits_win(self) -> None:
        assert resolve_food_type(_ranked(("pepper", 0.5), ("fruit", 0.4), ("apple", 0.35))) == "Apple"

    def test_only_top_three_labels_searched(self) -> None:
        candidates = _ranked(("sports car", 0.9), ("racer", 0.5), ("wheel", 0.4), ("banana", 0.35))
        assert resolve_food_type(candidates) == "Fresh Produce"

    def test_tie_goes_to_earliest_entry(self) -> None:
        taxonomy = {"alpha fruit": ("shared",), "beta fruit": ("shared",)}
        assert resolve_food_type(_ranked(("shared thing", 0.5)), taxonomy) == "Alpha Fruit"


class TestMatchScores:
    def test_arithmetic_uses_top_raw_score(self) -> None:
        scores = match_scores(_ranked(("apple", 0.5), ("fruit", 0.4)))
        # apple: (0.5 + 0.2) for "apple" + (0.5 + 0.1) for "fruit"
        assert scores == {"apple": pytest.approx(1.3)}

    def test_overlapping_keywords_each_count(self) -> None:
        scores = match_scores(_ranked(("bell pepper", 0.5)))
        assert scores == {"bell pepper": pytest.approx((0.5 + 0.2) + (0.5 + 0.1))}


class TestTitleCase:
    def test_each_word_capitalized(self) -> None:
        assert title_case("leafy  greens") == "Leafy Greens"
