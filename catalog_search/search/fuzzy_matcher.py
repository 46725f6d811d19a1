"""
Fuzzy name matching for catalog search.

Provides typo-tolerant matching of a query token against store, voucher
and product names using the edit-distance ratios from string_metrics.
"""

import logging
from typing import Iterable, Optional, Tuple

from .attribute_extractor import normalize_text
from .string_metrics import damerau_ratio, similarity_ratio

logger = logging.getLogger(__name__)


class FuzzyMatcher:
    """
    Fuzzy string matching for catalog item names.

    Supports:
    - Normalized matching (case, punctuation and whitespace insensitive)
    - Token matching for multi-word names ("zamsung" vs "Samsung Galaxy S24")
    - Transposition-aware similarity ("smasung" vs "samsung")
    """

    DEFAULT_NAME_THRESHOLD = 0.70

    # Trailing legal or retail suffixes that do not identify a merchant
    NAME_SUFFIXES = frozenset({"inc", "ltd", "llc", "gmbh", "plc", "co", "corp"})

    def __init__(self, name_threshold: float = DEFAULT_NAME_THRESHOLD):
        """
        Initialize fuzzy matcher.

        Args:
            name_threshold: Minimum similarity for name matches (0-1)
        """
        self.name_threshold = name_threshold

    def match_name(self, query: str, target: str) -> Tuple[bool, float]:
        """
        Check if query matches target name with fuzzy matching.

        Uses token-based matching for multi-word names:
        - "Samsung" matches "Samsung Galaxy S24 Ultra"
        - "Zamsung" matches "Samsung Galaxy S24 Ultra"

        Args:
            query: Search query (e.g., "zamsung")
            target: Target name (e.g., "Samsung Galaxy S24 Ultra")

        Returns:
            Tuple of (matches: bool, similarity_score: float)
        """
        query_norm = self._normalize_name(query)
        target_norm = self._normalize_name(target)

        if not query_norm or not target_norm:
            return (False, 0.0)

        if query_norm == target_norm:
            return (True, 1.0)

        if query_norm in target_norm:
            return (True, 0.9)

        if " " in target_norm:
            similarity = self._match_tokens(query_norm, target_norm)
        else:
            similarity = self._calculate_similarity(query_norm, target_norm)

        return (similarity >= self.name_threshold, similarity)

    def find_best_match(
        self, query: str, candidates: Iterable[str]
    ) -> Optional[Tuple[str, float]]:
        """
        Find best matching candidate name for query.

        Returns:
            Tuple of (best_match, similarity_score) or None if nothing reaches the threshold
        """
        best_match = None
        best_score = 0.0

        for candidate in candidates:
            matches, score = self.match_name(query, candidate)
            if matches and score > best_score:
                best_match = candidate
                best_score = score

        if best_match is None:
            return None
        return (best_match, best_score)

    def _normalize_name(self, name: Optional[str]) -> str:
        """
        Normalize a name for comparison.

        Examples:
            "Samsung Electronics Co." -> "samsung electronics"
            "  Nike   Store  " -> "nike store"
        """
        words = normalize_text(name).split()

        if len(words) > 1 and words[-1] in self.NAME_SUFFIXES:
            words = words[:-1]

        return " ".join(words)

    def _match_tokens(self, query: str, target: str) -> float:
        """
        Match query against tokens in target.

        Examples:
            "sams" vs "samsung galaxy" -> 0.95 (token prefix)
            "zamsung" vs "samsung galaxy" -> ~0.86 (token similarity)
        """
        target_tokens = target.split()

        for token in target_tokens:
            if token.startswith(query):
                return 0.95

        max_token_similarity = 0.0
        for token in target_tokens:
            max_token_similarity = max(max_token_similarity, self._calculate_similarity(query, token))

        full_similarity = self._calculate_similarity(query, target)

        return max(max_token_similarity, full_similarity)

    def _calculate_similarity(self, s1: str, s2: str) -> float:
        """
        Calculate similarity between two strings.

        The better of the plain and the transposition-aware edit ratio, so a
        swapped pair of letters costs one edit rather than two.

        Returns:
            Similarity score between 0.0 (no match) and 1.0 (exact match)
        """
        if not s1 or not s2:
            return 0.0

        if s1 == s2:
            return 1.0

        return max(similarity_ratio(s1, s2), damerau_ratio(s1, s2))

    def get_stats(self) -> dict:
        """
        Get matcher configuration.

        Returns:
            Dictionary with matcher statistics
        """
        return {
            "name_threshold": self.name_threshold,
            "algorithm": "rapidfuzz-levenshtein+damerau",
        }
