"""
Property-based tests for ranking, metric and cache invariants.
"""

from datetime import datetime, timezone

from hypothesis import assume, given, settings, strategies as st

from catalog_search.cache.search_cache import SearchCache
from catalog_search.domain.entities import CacheKey, ItemFlag, Store
from catalog_search.search.attribute_extractor import AttributeExtractor, normalize_text
from catalog_search.search.relevance_ranker import RelevanceRanker
from catalog_search.search.string_metrics import (
    damerau_levenshtein,
    fuzzy_match_score,
    levenshtein,
    metaphone,
    similarity_ratio,
    soundex,
)

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)

ascii_text = st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126), max_size=40)
words = st.from_regex(r"[a-z]{3,8}", fullmatch=True)
vocabulary = st.sampled_from(
    ["apple", "samsung", "galaxy", "nike", "running", "shoes", "black", "256gb", "deal", "store"]
)
names = st.lists(vocabulary, min_size=1, max_size=4).map(" ".join)

ranker = RelevanceRanker(clock=lambda: NOW)
extractor = AttributeExtractor()


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestMetricInvariants:
    """Test bounds and symmetry of the string metrics."""

    @given(ascii_text, ascii_text)
    def test_similarity_bounds_and_symmetry(self, a, b):
        ratio = similarity_ratio(a, b)

        assert 0.0 <= ratio <= 1.0
        assert ratio == similarity_ratio(b, a)

    @given(ascii_text, ascii_text)
    def test_damerau_never_exceeds_levenshtein(self, a, b):
        assert damerau_levenshtein(a, b) <= levenshtein(a, b)

    @given(ascii_text, ascii_text)
    def test_fuzzy_score_bounds(self, a, b):
        assert 0 <= fuzzy_match_score(a, b) <= 100

    @given(ascii_text)
    def test_fuzzy_score_identity(self, a):
        assume(a.strip())

        assert fuzzy_match_score(a, a) == 100

    @given(ascii_text)
    def test_phonetic_code_shapes(self, a):
        assert len(soundex(a)) == 4
        assert len(metaphone(a)) <= 8


class TestExtractionInvariants:
    """Test normalization and extraction are total and deterministic."""

    @given(ascii_text)
    def test_normalize_is_idempotent(self, text):
        assert normalize_text(normalize_text(text)) == normalize_text(text)

    @given(ascii_text)
    def test_extraction_is_deterministic(self, text):
        attributes = extractor.extract(text)

        assert attributes == extractor.extract(text)
        assert attributes.canonical_id == attributes.canonical_id.lower()
        assert " " not in attributes.canonical_id


class TestRankingInvariants:
    """Test ordering, non-negativity and match-strength monotonicity."""

    @settings(max_examples=50, deadline=None)
    @given(st.lists(names, max_size=8), st.one_of(st.just(""), names))
    def test_results_sorted_and_non_negative(self, display_texts, query):
        items = [Store(id=str(i), display_text=text) for i, text in enumerate(display_texts)]

        results = ranker.rank(items, query)
        scores = [r.score for r in results]

        assert scores == sorted(scores, reverse=True)
        assert all(score >= 0 for score in scores)
        if query:
            assert all(score > 0 for score in scores)
        else:
            assert len(results) == len(items)

    @settings(max_examples=50, deadline=None)
    @given(words, st.integers(min_value=0, max_value=5000), st.booleans())
    def test_match_strength_is_monotonic(self, word, popularity, featured):
        """Test exact > starts-with > contains when business signals are equal."""
        flags = frozenset({ItemFlag.FEATURED}) if featured else frozenset()
        items = [
            Store(id="contains", display_text=f"0000 {word}", popularity=popularity, flags=flags),
            Store(id="prefix", display_text=f"{word} 0000", popularity=popularity, flags=flags),
            Store(id="exact", display_text=word, popularity=popularity, flags=flags),
        ]

        results = ranker.rank(items, word)
        scores = {r.id: r.score for r in results}

        assert scores["exact"] > scores["prefix"] > scores["contains"]

    @settings(max_examples=30, deadline=None)
    @given(st.lists(names, min_size=1, max_size=6), names, st.integers(min_value=0, max_value=6))
    def test_limit_is_a_prefix_of_full_ranking(self, display_texts, query, limit):
        items = [Store(id=str(i), display_text=text) for i, text in enumerate(display_texts)]

        full = ranker.rank(items, query)
        window = ranker.rank(items, query, limit=limit)

        assert [r.id for r in window] == [r.id for r in full[:limit]]


class TestCacheInvariants:
    """Test the TTL boundary."""

    @given(st.floats(min_value=0, max_value=1000, allow_nan=False))
    def test_served_iff_younger_than_ttl(self, delta):
        clock = Clock()
        cache = SearchCache(ttl_seconds=300, clock=clock)
        key = CacheKey("us", "en", "nike")
        cache.set(key, [])

        clock.now = delta

        assert (cache.get(key) is not None) == (delta < 300)
