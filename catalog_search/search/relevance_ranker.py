"""
Relevance ranking for catalog search results.

Scores stores, vouchers and products against a parsed query with an
additive, auditable set of signals, then sorts and truncates.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..domain.entities import CatalogItem, ExtractedAttributes, ItemKey, QueryIntent, ScoredItem
from ..domain.exceptions import ValidationException
from .attribute_extractor import normalize_text
from .fuzzy_matcher import FuzzyMatcher
from .normalizer import CatalogNormalizer
from .query_intent_parser import QueryIntentParser

logger = logging.getLogger(__name__)

# Text signals
EXACT_MATCH_BONUS = 1000
PREFIX_MATCH_BONUS = 800
CONTAINS_MATCH_BONUS = 600
COMBINED_TEXT_BONUS = 400
EXPANDED_TERM_BONUS = 100

# Fuzzy fallback for single-token queries that match nowhere
FUZZY_MAX_BONUS = 200
FUZZY_MIN_QUERY_LENGTH = 3
DEFAULT_SIMILARITY_FLOOR = 0.7

# Attribute hints matched against extracted attributes or raw text
ATTRIBUTE_BONUSES = {
    "brand": 30,
    "model": 30,
    "capacity": 30,
    "color": 25,
    "size": 20,
}

# Business signals
FEATURED_BONUS = 50
EXCLUSIVE_BONUS = 30
VERIFIED_BONUS = 20
POPULARITY_DIVISOR = 10
POPULARITY_CAP = 100
RELATED_COUNT_MULTIPLIER = 2
RELATED_COUNT_CAP = 50
FRESHNESS_BONUS = 10
FRESHNESS_WINDOW_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RelevanceRanker:
    """
    Calculate relevance scores and produce ordered result windows.

    Scoring is additive, never multiplicative, so every signal in a
    ScoredItem's breakdown can be read off on its own:

    1. Text: exact (+1000), starts-with (+800) or contains (+600) on the
       display text; full query in the combined text (+400); +100 per
       expanded term found in the combined text
    2. Fuzzy fallback: single-token queries (3+ chars) found nowhere are
       compared to the display name; similarity >= floor gives up to +200
    3. Attributes: brand/model/capacity (+30), color (+25), size (+20)
    4. Business: featured (+50), exclusive (+30), verified (+20),
       popularity, related count, freshness (+10)

    For a non-empty query an item needs at least one text or attribute
    signal; business signals alone never pull an unrelated item into the
    results. Items scoring 0 are dropped. An empty query ranks every item
    by business signals alone.
    """

    def __init__(
        self,
        similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
        parser: Optional[QueryIntentParser] = None,
        normalizer: Optional[CatalogNormalizer] = None,
        matcher: Optional[FuzzyMatcher] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize relevance ranker.

        Args:
            similarity_floor: Minimum fuzzy similarity (0-1) for the fallback bonus
            parser: Parser used when ``rank`` receives a plain query string
            normalizer: Source of memoized item attributes
            matcher: Name matcher used by the fuzzy fallback
            clock: Returns the current time, used for the freshness boost
        """
        if not 0.0 <= similarity_floor <= 1.0:
            raise ValidationException("similarity_floor", similarity_floor, "must be between 0 and 1")
        self.similarity_floor = similarity_floor
        self.parser = parser or QueryIntentParser()
        self.normalizer = normalizer or CatalogNormalizer(self.parser.extractor)
        self.matcher = matcher or FuzzyMatcher(name_threshold=similarity_floor)
        self.clock = clock

    def rank(
        self,
        items: Iterable[CatalogItem],
        intent: Union[QueryIntent, str, None],
        limit: Optional[int] = None,
        attributes: Optional[Mapping[ItemKey, ExtractedAttributes]] = None,
    ) -> List[ScoredItem]:
        """
        Score every item, sort by score descending and truncate.

        Args:
            items: Items to rank; order breaks ties
            intent: Parsed intent, or a raw query string to parse
            limit: Maximum results; None returns all
            attributes: Precomputed attributes by item key (otherwise looked up lazily)

        Returns:
            List of ScoredItem sorted by score (descending), zero scores excluded
            unless the query is empty
        """
        if limit is not None and limit < 0:
            raise ValidationException("limit", limit, "must not be negative")
        if not isinstance(intent, QueryIntent):
            intent = self.parser.parse(intent)

        now = self.clock()
        scored = []
        for item in items:
            scored_item = self.score(item, intent, attributes=attributes, now=now)
            if intent.is_empty or scored_item.score > 0:
                scored.append(scored_item)

        # list.sort is stable: equal scores keep input order
        scored.sort(key=lambda s: s.score, reverse=True)

        if limit is not None:
            scored = scored[:limit]
        return scored

    def score(
        self,
        item: CatalogItem,
        intent: QueryIntent,
        attributes: Optional[Mapping[ItemKey, ExtractedAttributes]] = None,
        now: Optional[datetime] = None,
    ) -> ScoredItem:
        """
        Calculate the relevance score of a single item.

        Missing fields contribute nothing; a malformed item never raises.
        """
        breakdown: Dict[str, float] = {}
        match_type = "none"

        if not intent.is_empty:
            match_type = self._score_text(item, intent, breakdown)
            self._score_attributes(item, intent, attributes, breakdown)
            if not breakdown:
                return ScoredItem(item=item, score=0.0, match_type="none", breakdown={})

        self._score_business(item, now or self.clock(), breakdown)

        return ScoredItem(
            item=item,
            score=float(sum(breakdown.values())),
            match_type=match_type,
            breakdown=breakdown,
        )

    def _score_text(self, item: CatalogItem, intent: QueryIntent, breakdown: Dict[str, float]) -> str:
        query = intent.normalized_query
        display = normalize_text(item.display_text)
        combined = normalize_text(item.searchable_text)
        match_type = "none"

        if display and display == query:
            breakdown["exact"] = EXACT_MATCH_BONUS
            match_type = "exact"
        elif display.startswith(query):
            breakdown["prefix"] = PREFIX_MATCH_BONUS
            match_type = "prefix"
        elif query in display:
            breakdown["contains"] = CONTAINS_MATCH_BONUS
            match_type = "contains"

        if query in combined:
            breakdown["text"] = COMBINED_TEXT_BONUS
            if match_type == "none":
                match_type = "text"

        matched_terms = sum(1 for term in intent.expanded_terms if term in combined)
        if matched_terms:
            breakdown["terms"] = matched_terms * EXPANDED_TERM_BONUS
            if match_type == "none":
                match_type = "term"

        if self._fuzzy_applies(intent, combined):
            _, similarity = self.matcher.match_name(intent.tokens[0], item.display_text)
            if similarity >= self.similarity_floor:
                breakdown["fuzzy"] = math.floor(similarity * FUZZY_MAX_BONUS)
                if match_type == "none":
                    match_type = "fuzzy"

        return match_type

    @staticmethod
    def _fuzzy_applies(intent: QueryIntent, combined: str) -> bool:
        if len(intent.tokens) != 1:
            return False
        token = intent.tokens[0]
        return len(token) >= FUZZY_MIN_QUERY_LENGTH and token not in combined

    def _score_attributes(
        self,
        item: CatalogItem,
        intent: QueryIntent,
        attributes: Optional[Mapping[ItemKey, ExtractedAttributes]],
        breakdown: Dict[str, float],
    ):
        hints = intent.attribute_hints()
        if not hints:
            return

        item_attributes = None
        if attributes is not None:
            item_attributes = attributes.get(item.key)
        if item_attributes is None:
            item_attributes = self.normalizer.attributes_for(item)

        combined = normalize_text(item.searchable_text)
        for name, hint in hints.items():
            value = getattr(item_attributes, name, None)
            if (value and value.lower() == hint.lower()) or normalize_text(hint) in combined:
                breakdown[name] = ATTRIBUTE_BONUSES[name]

    @staticmethod
    def _score_business(item: CatalogItem, now: datetime, breakdown: Dict[str, float]):
        if item.is_featured:
            breakdown["featured"] = FEATURED_BONUS
        if item.is_exclusive:
            breakdown["exclusive"] = EXCLUSIVE_BONUS
        if item.is_verified:
            breakdown["verified"] = VERIFIED_BONUS

        popularity = min(max(item.popularity, 0.0) / POPULARITY_DIVISOR, POPULARITY_CAP)
        if popularity:
            breakdown["popularity"] = popularity

        related = min(max(item.related_count, 0) * RELATED_COUNT_MULTIPLIER, RELATED_COUNT_CAP)
        if related:
            breakdown["related"] = related

        if item.is_fresh(now, FRESHNESS_WINDOW_DAYS):
            breakdown["freshness"] = FRESHNESS_BONUS

    def explain(self, scored: ScoredItem) -> Tuple[Tuple[str, float], ...]:
        """Signals of a scored item, strongest first."""
        return tuple(sorted(scored.breakdown.items(), key=lambda signal: signal[1], reverse=True))

    def get_stats(self) -> dict:
        """
        Get ranker configuration.

        Returns:
            Dictionary with scoring constants
        """
        return {
            "text": {
                "exact": EXACT_MATCH_BONUS,
                "prefix": PREFIX_MATCH_BONUS,
                "contains": CONTAINS_MATCH_BONUS,
                "combined_text": COMBINED_TEXT_BONUS,
                "expanded_term": EXPANDED_TERM_BONUS,
            },
            "fuzzy": {"max_bonus": FUZZY_MAX_BONUS, "similarity_floor": self.similarity_floor},
            "attributes": dict(ATTRIBUTE_BONUSES),
            "business": {
                "featured": FEATURED_BONUS,
                "exclusive": EXCLUSIVE_BONUS,
                "verified": VERIFIED_BONUS,
                "popularity_cap": POPULARITY_CAP,
                "related_count_cap": RELATED_COUNT_CAP,
                "freshness": FRESHNESS_BONUS,
            },
            "normalized_items": len(self.normalizer),
        }
