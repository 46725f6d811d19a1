"""
Query intent parsing.

Turns a raw query string into a QueryIntent: normalized text, an expanded
term set for recall, attribute hints, a price range and a category hint.
"""

import logging
import re
from decimal import Decimal
from typing import FrozenSet, Optional

from ..domain.entities import PriceRange, QueryIntent
from .attribute_extractor import AttributeExtractor, get_attribute_extractor, normalize_text
from .dictionaries import BRAND_ALIASES, CATEGORY_KEYWORDS, STOP_WORDS, SYNONYMS

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 4

_AMOUNT = r"[$€£]?\s*(\d+(?:\.\d+)?)"

# Range patterns are checked first; the first pattern that matches wins.
PRICE_RANGE_PATTERNS = (
    re.compile(r"\bbetween\s*" + _AMOUNT + r"\s*and\s*" + _AMOUNT),
    re.compile(r"\bfrom\s*" + _AMOUNT + r"\s*to\s*" + _AMOUNT),
)
PRICE_CEILING_PATTERNS = (
    re.compile(r"\bunder\s*" + _AMOUNT),
    re.compile(r"\bbelow\s*" + _AMOUNT),
    re.compile(r"\bless\s+than\s*" + _AMOUNT),
    re.compile(r"\bcheaper\s+than\s*" + _AMOUNT),
)


def extract_price_range(query: Optional[str]) -> Optional[PriceRange]:
    """
    Extract a price range from phrases like "under $50" or "between 100 and 200".

    A range phrase takes precedence over a ceiling phrase. Reversed bounds
    are swapped.

    Examples:
        "headphones under $50" -> PriceRange(max=50)
        "tv from $300 to $500" -> PriceRange(min=300, max=500)
    """
    if not query:
        return None
    text = query.lower()

    for pattern in PRICE_RANGE_PATTERNS:
        match = pattern.search(text)
        if match:
            low, high = Decimal(match.group(1)), Decimal(match.group(2))
            if low > high:
                low, high = high, low
            return PriceRange(min=low, max=high)

    for pattern in PRICE_CEILING_PATTERNS:
        match = pattern.search(text)
        if match:
            return PriceRange(max=Decimal(match.group(1)))

    return None


def detect_category(normalized_query: str) -> Optional[str]:
    """First category whose keyword list intersects the query (whole words or phrases)."""
    if not normalized_query:
        return None
    padded = f" {normalized_query} "
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(f" {keyword} " in padded for keyword in keywords):
            return category
    return None


def expand_query(normalized_query: str) -> FrozenSet[str]:
    """
    Expand a normalized query into the set of terms the ranker looks for.

    Includes the query itself, every non-stop word, synonyms of each word,
    4-character prefixes of longer words, and the canonical brand plus all
    aliases when a word names a brand.
    """
    if not normalized_query:
        return frozenset()

    terms = {normalized_query}
    for word in normalized_query.split():
        if word in STOP_WORDS or len(word) <= 1:
            continue
        terms.add(word)
        terms.update(SYNONYMS.get(word, ()))
        if len(word) > PREFIX_LENGTH:
            terms.add(word[:PREFIX_LENGTH])
        for brand, aliases in BRAND_ALIASES.items():
            if word == brand.lower() or word in aliases:
                terms.add(brand.lower())
                terms.update(aliases)

    return frozenset(terms)


class QueryIntentParser:
    """
    Parse raw queries into structured intents.

    Stateless apart from the shared, read-only extractor tables; safe to use
    from multiple threads.
    """

    def __init__(self, extractor: Optional[AttributeExtractor] = None):
        self.extractor = extractor or get_attribute_extractor()

    def parse(self, query: Optional[str]) -> QueryIntent:
        """
        Parse a query.

        Args:
            query: Raw query text; None and blank queries yield an empty intent

        Returns:
            QueryIntent
        """
        raw = query or ""
        normalized = normalize_text(raw)
        if not normalized:
            return QueryIntent(raw_query=raw, price_range=extract_price_range(raw))

        category = detect_category(normalized)
        attributes = self.extractor.extract(raw, category)

        intent = QueryIntent(
            raw_query=raw,
            normalized_query=normalized,
            tokens=tuple(normalized.split()),
            expanded_terms=expand_query(normalized),
            brand=attributes.brand,
            model=attributes.model,
            capacity=attributes.capacity,
            color=attributes.color,
            size=attributes.size,
            price_range=extract_price_range(raw),
            category_hint=category,
        )
        logger.debug(
            f"Parsed query '{normalized}': {len(intent.expanded_terms)} terms, "
            f"hints={intent.attribute_hints()}, category={category}"
        )
        return intent

