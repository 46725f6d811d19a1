"""
Prometheus metrics for catalog search.

Tracks search queries, ranking latency, result sizes, cache performance
and catalog loads.
"""

from typing import Tuple

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# Search metrics
search_queries_total = Counter(
    "catalog_search_queries_total", "Total search queries", ["result_type", "status"]
)

search_query_duration_seconds = Histogram(
    "catalog_search_query_duration_seconds",
    "Search query duration in seconds",
    ["result_type"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

search_results_per_query = Histogram(
    "catalog_search_results_per_query",
    "Number of results returned per query",
    ["result_type"],
    buckets=(0, 1, 5, 10, 25, 50, 100),
)

search_corrections_total = Counter(
    "catalog_search_corrections_total", "Queries answered with spelling corrections"
)

# Cache metrics
search_cache_hits_total = Counter(
    "catalog_search_cache_hits_total", "Total cache hits", ["cache_type"]
)

search_cache_misses_total = Counter(
    "catalog_search_cache_misses_total", "Total cache misses", ["cache_type"]
)

search_cache_stale_total = Counter(
    "catalog_search_cache_stale_total",
    "Lookups that found an expired entry and recomputed",
    ["cache_type"],
)

search_cache_invalidations_total = Counter(
    "catalog_search_cache_invalidations_total",
    "Total cache invalidations",
    ["cache_type", "scope"],
)

search_cache_evictions_total = Counter(
    "catalog_search_cache_evictions_total", "Total cache evictions", ["cache_type"]
)

search_cache_size = Gauge(
    "catalog_search_cache_size", "Current cache size in entries", ["cache_type"]
)

# Catalog metrics
catalog_items_loaded = Gauge(
    "catalog_search_catalog_items", "Items in the loaded catalog", ["region", "language", "kind"]
)

catalog_normalization_duration_seconds = Histogram(
    "catalog_search_normalization_duration_seconds",
    "Batch normalization duration in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


def track_search_query(
    result_type: str, success: bool, duration: float, result_count: int = 0
):
    """Track search query metrics."""
    status = "success" if success else "failure"
    search_queries_total.labels(result_type=result_type, status=status).inc()
    search_query_duration_seconds.labels(result_type=result_type).observe(duration)
    if success:
        search_results_per_query.labels(result_type=result_type).observe(result_count)


def track_corrections_offered():
    search_corrections_total.inc()


def track_cache_hit(cache_type: str = "search"):
    """Track cache hits."""
    search_cache_hits_total.labels(cache_type=cache_type).inc()


def track_cache_miss(cache_type: str = "search"):
    """Track cache misses."""
    search_cache_misses_total.labels(cache_type=cache_type).inc()


def track_cache_stale(cache_type: str = "search"):
    """Track lookups that hit an expired entry."""
    search_cache_stale_total.labels(cache_type=cache_type).inc()


def track_cache_invalidation(scope: str, cache_type: str = "search"):
    """Track invalidations by scope (key, language, region, all)."""
    search_cache_invalidations_total.labels(cache_type=cache_type, scope=scope).inc()


def track_cache_eviction(cache_type: str = "search"):
    """Track cache evictions."""
    search_cache_evictions_total.labels(cache_type=cache_type).inc()


def update_cache_size(cache_type: str, size: int):
    """Update cache size gauge."""
    search_cache_size.labels(cache_type=cache_type).set(size)


def track_catalog_load(region: str, language: str, counts: dict, normalization_seconds: float):
    """Track the size of a freshly loaded catalog snapshot."""
    for kind, count in counts.items():
        catalog_items_loaded.labels(region=region, language=language, kind=kind).set(count)
    catalog_normalization_duration_seconds.observe(normalization_seconds)


def render_metrics() -> Tuple[bytes, str]:
    """
    Prometheus exposition for the calling surface.

    Returns:
        Tuple of (payload, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
