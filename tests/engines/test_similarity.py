"""
Tests for fuzzy name matching.

Covers:
- Levenshtein distance
- Normalised similarity bounds and case handling
- fuzzy_match containment and threshold
- Candidate ranking
"""

import pytest

from fuel_engines.similarity import (
    fuzzy_match,
    levenshtein_distance,
    rank_candidates,
    similarity,
)


class TestLevenshteinDistance:

    @pytest.mark.parametrize(
        "first, second, expected",
        [
            ("", "", 0),
            ("", "ABC", 3),
            ("ABC", "", 3),
            ("KAMOA", "KAMOA", 0),
            ("KAMOWA", "KAMOA", 1),
            ("KAMUA", "KAMOA", 1),
            ("KITTEN", "SITTING", 3),
        ],
    )
    def test_distance(self, first, second, expected):
        assert levenshtein_distance(first, second) == expected

    def test_symmetric(self):
        assert levenshtein_distance("LUBUMBASHI", "LIKASI") == levenshtein_distance("LIKASI", "LUBUMBASHI")


class TestSimilarity:

    def test_identical_is_one(self):
        assert similarity("KOLWEZI", "KOLWEZI") == 1.0

    def test_case_insensitive(self):
        assert similarity("kolwezi", "KOLWEZI") == 1.0

    def test_both_empty_is_one(self):
        assert similarity("", "") == 1.0

    def test_one_empty_is_zero(self):
        assert similarity("KAMOA", "") == 0.0

    def test_one_typo(self):
        """One insertion over six characters."""
        assert similarity("KAMOWA", "KAMOA") == pytest.approx(5 / 6)

    def test_unrelated_names_score_low(self):
        assert similarity("DAR", "MOSHI") < 0.5


class TestFuzzyMatch:

    def test_exact_match(self):
        assert fuzzy_match("NMI", "NMI")

    def test_trimmed_and_case_insensitive(self):
        assert fuzzy_match("  nmi ", "NMI")

    def test_value_contained_in_target(self):
        assert fuzzy_match("NM", "NMI")

    def test_target_contained_in_value(self):
        assert fuzzy_match("MOSHI TOWN", "MOSHI")

    def test_similarity_at_threshold(self):
        assert fuzzy_match("KAMOWA", "KAMOA")

    def test_below_threshold(self):
        assert not fuzzy_match("LUBUMBASHI", "KAMOA")

    def test_empty_value_does_not_match(self):
        assert not fuzzy_match("", "KAMOA")

    def test_custom_threshold(self):
        assert not fuzzy_match("KAMOWA", "KAMOA", threshold=0.9)


class TestRankCandidates:

    def test_best_first(self):
        ranked = rank_candidates("KOLWEZ", ["LIKASI", "KOLWEZI", "KAMOA"], threshold=0.6)

        assert ranked[0][0] == "KOLWEZI"
        assert all(score >= 0.6 for _, score in ranked)

    def test_threshold_filters(self):
        assert rank_candidates("DAR", ["LUBUMBASHI", "KOLWEZI"], threshold=0.6) == []

    def test_limit(self):
        ranked = rank_candidates("DNH", ["DNH", "DNY", "DNW", "DPN"], threshold=0.5, limit=2)

        assert len(ranked) == 2
        assert ranked[0] == ("DNH", 1.0)

    def test_ties_keep_candidate_order(self):
        ranked = rank_candidates("DNX", ["DNY", "DNW"], threshold=0.5)

        assert [name for name, _ in ranked] == ["DNY", "DNW"]
