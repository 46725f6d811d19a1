"""Cache module initialization."""

from .search_cache import SearchCache

__all__ = ["SearchCache"]
