"""
Search module for catalog search.

Provides attribute extraction, query parsing, fuzzy matching, relevance
ranking and suggestions.
"""
from .attribute_extractor import AttributeExtractor
from .fuzzy_matcher import FuzzyMatcher
from .normalizer import CatalogNormalizer, NormalizationReport
from .query_intent_parser import QueryIntentParser
from .relevance_ranker import RelevanceRanker
from .suggestions import SpellingCorrector, VocabularyIndex

__all__ = [
    "AttributeExtractor",
    "CatalogNormalizer",
    "FuzzyMatcher",
    "NormalizationReport",
    "QueryIntentParser",
    "RelevanceRanker",
    "SpellingCorrector",
    "VocabularyIndex",
]
