"""Service layer - facade consumed by the calling surface."""

from .catalog_search_service import CatalogSearchService, CatalogSnapshot, SearchResponse

__all__ = ["CatalogSearchService", "CatalogSnapshot", "SearchResponse"]
