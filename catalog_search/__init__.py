"""
Catalog normalization and fuzzy-search ranking for a coupon/catalog storefront.

Extracts canonical attributes from item names, scores stores, vouchers and
products against free-text queries, and caches ranked result sets per
region and language.
"""

from .cache.search_cache import SearchCache
from .domain.entities import (
    CatalogItem,
    ExtractedAttributes,
    Product,
    QueryIntent,
    ResultType,
    ScoredItem,
    Store,
    Voucher,
)
from .search.attribute_extractor import AttributeExtractor
from .search.query_intent_parser import QueryIntentParser
from .search.relevance_ranker import RelevanceRanker
from .services.catalog_search_service import CatalogSearchService, SearchResponse

__version__ = "1.0.0"

__all__ = [
    "AttributeExtractor",
    "CatalogItem",
    "CatalogSearchService",
    "ExtractedAttributes",
    "Product",
    "QueryIntent",
    "QueryIntentParser",
    "RelevanceRanker",
    "ResultType",
    "ScoredItem",
    "SearchCache",
    "SearchResponse",
    "Store",
    "Voucher",
]
