"""
Tests for string similarity and phonetic metrics.
"""

import pytest

from catalog_search.search.string_metrics import (
    damerau_levenshtein,
    damerau_ratio,
    find_fuzzy_matches,
    fuzzy_match_score,
    keyboard_proximity_variants,
    levenshtein,
    metaphone,
    n_gram_similarity,
    similarity_ratio,
    single_edit_variants,
    soundex,
    sounds_like,
    typo_variants,
)


class TestEditDistances:
    """Test Levenshtein and Damerau-Levenshtein distances."""

    def test_levenshtein_classic_example(self):
        """Test the textbook kitten/sitting distance."""
        assert levenshtein("kitten", "sitting") == 3

    def test_levenshtein_against_empty(self):
        """Test distance to an empty string is the other length."""
        assert levenshtein("", "abc") == 3
        assert levenshtein("abc", "") == 3
        assert levenshtein("", "") == 0

    def test_levenshtein_is_case_insensitive(self):
        """Test inputs are case-folded."""
        assert levenshtein("SAMSUNG", "samsung") == 0

    def test_transposition_costs_one_edit_in_damerau(self):
        """Test adjacent swaps cost one Damerau edit but two Levenshtein edits."""
        assert damerau_levenshtein("smasung", "samsung") == 1
        assert levenshtein("smasung", "samsung") == 2


class TestSimilarityRatios:
    """Test normalized similarity ratios."""

    def test_two_empty_strings_are_identical(self):
        """Test degenerate empty input."""
        assert similarity_ratio("", "") == 1.0
        assert damerau_ratio("", "") == 1.0

    def test_empty_against_non_empty(self):
        """Test empty input shares nothing with non-empty input."""
        assert similarity_ratio("", "abc") == 0.0

    def test_identical_strings(self):
        """Test identical strings score 1.0."""
        assert similarity_ratio("Nike", "nike") == 1.0

    def test_single_substitution(self):
        """Test one substitution over seven characters."""
        assert similarity_ratio("zamsung", "samsung") == pytest.approx(6 / 7)

    def test_damerau_ratio_rewards_transpositions(self):
        """Test swapped letters keep a high Damerau ratio."""
        assert damerau_ratio("smasung", "samsung") == pytest.approx(6 / 7)
        assert similarity_ratio("smasung", "samsung") == pytest.approx(5 / 7)


class TestPhonetics:
    """Test Soundex and Metaphone codes."""

    def test_soundex_known_codes(self):
        """Test well-known Soundex encodings."""
        assert soundex("Samsung") == "S525"
        assert soundex("Robert") == "R163"

    def test_soundex_without_letters(self):
        """Test input without letters encodes to zeros."""
        assert soundex("") == "0000"
        assert soundex("1234") == "0000"

    def test_soundex_pads_short_codes(self):
        """Test short codes are padded to four characters."""
        assert soundex("Lee") == "L000"

    def test_metaphone_collapses_digraphs(self):
        """Test digraphs collapse to one sound."""
        assert metaphone("phone") == "fn"
        assert metaphone("knight") == "ngt"

    def test_metaphone_keeps_leading_vowel(self):
        """Test vowels survive only at the start."""
        assert metaphone("apple") == "appl"

    def test_metaphone_max_length(self):
        """Test codes are truncated to eight characters."""
        assert len(metaphone("supercalifragilistic")) <= 8

    def test_sounds_like(self):
        """Test phonetic agreement."""
        assert sounds_like("phone", "fone")
        assert not sounds_like("apple", "samsung")


class TestNGramSimilarity:
    """Test Jaccard n-gram similarity."""

    def test_identical(self):
        assert n_gram_similarity("abc", "abc") == 1.0

    def test_disjoint(self):
        assert n_gram_similarity("ab", "cd") == 0.0

    def test_too_short_for_grams(self):
        """Test strings shorter than n produce no n-grams."""
        assert n_gram_similarity("a", "b", 2) == 0.0

    def test_partial_overlap(self):
        """Test night/nacht share only the 'ht' bigram."""
        assert n_gram_similarity("night", "nacht", 2) == pytest.approx(1 / 7)


class TestFuzzyMatchScore:
    """Test the blended 0-100 score."""

    def test_exact_match(self):
        assert fuzzy_match_score("Samsung", "samsung") == 100

    def test_prefix_match(self):
        assert fuzzy_match_score("sam", "samsung") == 95

    def test_substring_match(self):
        assert fuzzy_match_score("sung", "samsung") == 85

    def test_empty_input_scores_zero(self):
        """Test empty query or target scores 0."""
        assert fuzzy_match_score("", "samsung") == 0
        assert fuzzy_match_score("samsung", "") == 0
        assert fuzzy_match_score("   ", "samsung") == 0

    def test_blended_typo_score(self):
        """Test a one-letter typo lands in the blended range."""
        assert fuzzy_match_score("zamsung", "samsung") == 71

    def test_unrelated_words_score_low(self):
        """Test unrelated words stay below the correction threshold."""
        assert fuzzy_match_score("apple", "samsung") < 60


class TestFindFuzzyMatches:
    """Test thresholded candidate search."""

    def test_keeps_close_candidates_only(self):
        """Test only candidates above the threshold are returned."""
        matches = find_fuzzy_matches("samsng", ["Samsung", "Sony", "Apple"])

        assert [name for name, _ in matches] == ["Samsung"]
        assert matches[0][1] >= 60

    def test_sorted_by_score(self):
        """Test exact beats prefix beats substring."""
        matches = find_fuzzy_matches("sam", ["xsamx", "samsung", "sam"])

        assert [name for name, _ in matches] == ["sam", "samsung", "xsamx"]
        assert [score for _, score in matches] == [100, 95, 85]


class TestTypoVariants:
    """Test variant generators used by the spelling corrector."""

    def test_keyboard_neighbours(self):
        """Test adjacent-key substitutions."""
        variants = keyboard_proximity_variants("cat")

        assert "xat" in variants
        assert "cat" not in variants

    def test_typo_variants(self):
        """Test doubled, dropped, swapped and vowel-substituted letters."""
        variants = typo_variants("phone")

        assert "phonee" in variants
        assert "phne" in variants
        assert "phnoe" in variants
        assert "phane" in variants
        assert "phone" not in variants

    def test_single_edit_variants_reach_brand(self):
        """Test 'zamsung' is one keyboard slip away from 'samsung'."""
        assert "samsung" in single_edit_variants("zamsung")
