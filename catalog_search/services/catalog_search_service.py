"""
Catalog search service.

Facade the calling surface talks to: holds the loaded catalog per region
and language, runs the parse -> filter -> rank pipeline behind the result
cache, and answers autocomplete, trending, facet and correction requests.
"""

import math
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type

import structlog
from pydantic import ValidationError

from ..cache.search_cache import SearchCache
from ..core.config import Settings, settings as default_settings
from ..domain.entities import (
    AutocompleteSuggestion,
    CacheKey,
    CatalogItem,
    ExtractedAttributes,
    ItemKey,
    PriceRange,
    Product,
    QueryIntent,
    ResultType,
    ScoredItem,
    SpellingCorrection,
    Store,
    Voucher,
)
from ..domain.exceptions import CatalogNotLoadedException, ValidationException
from ..metrics import track_catalog_load, track_corrections_offered, track_search_query
from ..search.facets import SearchFacets, build_facets
from ..search.filters import sort_results
from ..search.normalizer import NormalizationReport
from ..search.relevance_ranker import RelevanceRanker
from ..search.suggestions import SpellingCorrector, VocabularyIndex, autocomplete, trending
from ..validators import SearchRequest

logger = structlog.get_logger(__name__)

# Storage collaborator hook: (region, language) -> {"stores": [...], "vouchers": [...], "products": [...]}
CatalogSource = Callable[[str, str], Mapping[str, Iterable[Any]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _locale(code: str) -> str:
    return code.strip().lower()


def _as_items(cls: Type[CatalogItem], values: Optional[Iterable[Any]]) -> Tuple[Any, ...]:
    """Accept entities or plain storage records."""
    return tuple(v if isinstance(v, cls) else cls.from_record(v) for v in (values or ()))


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of one region/language catalog and its derived indexes."""

    region: str
    language: str
    stores: Tuple[Store, ...]
    vouchers: Tuple[Voucher, ...]
    products: Tuple[Product, ...]
    attributes: Mapping[ItemKey, ExtractedAttributes]
    vocabulary: VocabularyIndex
    loaded_at: datetime

    def all_items(self) -> Tuple[CatalogItem, ...]:
        return self.stores + self.vouchers + self.products

    def counts(self) -> Dict[str, int]:
        return {
            "stores": len(self.stores),
            "vouchers": len(self.vouchers),
            "products": len(self.products),
        }


@dataclass
class SearchResponse:
    """Ranked result window plus everything the calling surface needs to render it."""

    query: str
    intent: QueryIntent
    region: str
    language: str
    result_type: ResultType
    results: List[ScoredItem]
    total: int
    page: int
    limit: int
    corrections: List[SpellingCorrection] = field(default_factory=list)
    cached: bool = False

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    def to_dict(self) -> dict:
        price_range: Optional[PriceRange] = self.intent.price_range
        return {
            "query": self.query,
            "region": self.region,
            "language": self.language,
            "type": self.result_type.value,
            "results": [result.to_dict() for result in self.results],
            "total": self.total,
            "corrections": [correction.to_dict() for correction in self.corrections],
            "intent": {
                "normalized_query": self.intent.normalized_query,
                "category": self.intent.category_hint,
                "attributes": self.intent.attribute_hints(),
                "price_range": {
                    "min": float(price_range.min) if price_range.min is not None else None,
                    "max": float(price_range.max) if price_range.max is not None else None,
                }
                if price_range
                else None,
            },
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total_pages": self.total_pages,
                "has_next": self.has_next,
                "has_prev": self.page > 1,
            },
            "cached": self.cached,
        }


class CatalogSearchService:
    """
    Search facade over loaded catalog snapshots.

    Thread-safe: snapshots are immutable and swapped under a lock, the
    ranker is stateless apart from its memoizing normalizer, and the cache
    does its own locking.
    """

    def __init__(
        self,
        cache: Optional[SearchCache] = None,
        ranker: Optional[RelevanceRanker] = None,
        source: Optional[CatalogSource] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the service.

        Args:
            cache: Result cache (default: built from settings)
            ranker: Relevance ranker (default: built from settings, sharing ``clock``)
            source: Optional storage hook used to load a catalog on first use
            config: Settings (default: module-level settings)
            clock: Current time for voucher expiry and freshness
        """
        self.config = config or default_settings
        self.clock = clock
        self.cache = cache or SearchCache(
            ttl_seconds=self.config.SEARCH_CACHE_TTL_SECONDS,
            max_entries=self.config.SEARCH_CACHE_MAX_ENTRIES,
        )
        self.ranker = ranker or RelevanceRanker(
            similarity_floor=self.config.FUZZY_SIMILARITY_FLOOR, clock=clock
        )
        self.source = source
        self.log = logger.bind(service=self.config.SERVICE_NAME)

        self._snapshots: Dict[Tuple[str, str], CatalogSnapshot] = {}
        self._lock = threading.Lock()
        self._load_lock = threading.Lock()

    # Catalog lifecycle

    def load_catalog(
        self,
        region: str,
        language: str,
        stores: Optional[Iterable[Any]] = None,
        vouchers: Optional[Iterable[Any]] = None,
        products: Optional[Iterable[Any]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> NormalizationReport:
        """
        Replace the catalog for a region/language pair.

        Items may be entities or plain storage records. Attributes are
        extracted in one batch (reusing earlier results for unchanged
        items), the correction vocabulary is rebuilt, and the pair's cache
        entries are invalidated.

        Args:
            region: Catalog region
            language: Catalog language
            stores: Store entities or records
            vouchers: Voucher entities or records
            products: Product entities or records
            should_stop: Interrupts batch normalization; remaining items are
                normalized lazily when first ranked

        Returns:
            NormalizationReport of the batch pass
        """
        region, language = _locale(region), _locale(language)
        stores_t = _as_items(Store, stores)
        vouchers_t = _as_items(Voucher, vouchers)
        products_t = _as_items(Product, products)
        items = stores_t + vouchers_t + products_t

        normalizer = self.ranker.normalizer
        report = normalizer.normalize(items, should_stop=should_stop)

        snapshot = CatalogSnapshot(
            region=region,
            language=language,
            stores=stores_t,
            vouchers=vouchers_t,
            products=products_t,
            attributes=normalizer.attributes_map(items),
            vocabulary=VocabularyIndex.build(items),
            loaded_at=self.clock(),
        )

        with self._lock:
            self._snapshots[(region, language)] = snapshot
            live_keys = {item.key for snap in self._snapshots.values() for item in snap.all_items()}
        normalizer.retain(live_keys)

        removed = self.cache.invalidate(region, language)
        track_catalog_load(region, language, snapshot.counts(), report.duration_seconds)
        self.log.info(
            "catalog_loaded",
            region=region,
            language=language,
            normalization_completed=report.completed,
            invalidated_entries=removed,
            **snapshot.counts(),
        )
        return report

    def snapshot(self, region: str, language: str) -> CatalogSnapshot:
        """
        Get the loaded catalog, loading it from the source on first use.

        Raises:
            CatalogNotLoadedException: Nothing loaded and no source configured
        """
        region, language = _locale(region), _locale(language)
        with self._lock:
            snapshot = self._snapshots.get((region, language))
        if snapshot is not None:
            return snapshot

        if self.source is None:
            raise CatalogNotLoadedException(region, language)

        with self._load_lock:
            with self._lock:
                snapshot = self._snapshots.get((region, language))
            if snapshot is None:
                records = self.source(region, language)
                self.load_catalog(
                    region,
                    language,
                    stores=records.get("stores"),
                    vouchers=records.get("vouchers"),
                    products=records.get("products"),
                )
                with self._lock:
                    snapshot = self._snapshots[(region, language)]
        return snapshot

    def invalidate(self, region: Optional[str] = None, language: Optional[str] = None) -> int:
        """
        Drop cached result sets after the underlying catalog changed.

        With neither argument every entry is dropped.

        Returns:
            Number of cache entries removed
        """
        region = _locale(region) if region is not None else None
        language = _locale(language) if language is not None else None
        removed = self.cache.invalidate(region, language)
        self.log.info("cache_invalidated", region=region, language=language, removed=removed)
        return removed

    # Queries

    def search(self, request: Optional[SearchRequest] = None, **params: Any) -> SearchResponse:
        """
        Run a search.

        Args:
            request: Validated request; alternatively pass its fields as keywords

        Returns:
            SearchResponse with the requested page of ranked results

        Raises:
            ValidationException: Invalid request fields
            CatalogNotLoadedException: No catalog for the region/language
        """
        request = request or self._build_request(params)
        start = time.perf_counter()
        result_type = request.result_type.value

        try:
            snapshot = self.snapshot(request.region, request.language)
            intent = self.ranker.parser.parse(request.query)
            ranked, cached = self._ranked(snapshot, intent, request)
        except Exception:
            track_search_query(result_type, False, time.perf_counter() - start)
            raise

        ordered = sort_results(ranked, request.sort)
        limit = request.limit or self._default_limit(request.result_type)
        offset = (request.page - 1) * limit
        window = ordered[offset : offset + limit]

        corrections: List[SpellingCorrection] = []
        if (
            request.include_corrections
            and not intent.is_empty
            and len(ranked) < self.config.CORRECTION_RESULT_THRESHOLD
        ):
            corrections = self._corrector(snapshot).suggest(request.query)
            if corrections:
                track_corrections_offered()

        duration = time.perf_counter() - start
        track_search_query(result_type, True, duration, len(window))
        self.log.info(
            "search_completed",
            query=intent.normalized_query,
            region=request.region,
            language=request.language,
            result_type=result_type,
            total=len(ranked),
            returned=len(window),
            corrections=len(corrections),
            cached=cached,
            duration_ms=round(duration * 1000, 2),
        )

        return SearchResponse(
            query=request.query,
            intent=intent,
            region=request.region,
            language=request.language,
            result_type=request.result_type,
            results=window,
            total=len(ranked),
            page=request.page,
            limit=limit,
            corrections=corrections,
            cached=cached,
        )

    def corrections(self, query: str, region: str, language: str) -> List[SpellingCorrection]:
        """Spelling corrections for a query regardless of how many results it has."""
        return self._corrector(self.snapshot(region, language)).suggest(query)

    def autocomplete(
        self, query: str, region: str, language: str, limit: Optional[int] = None
    ) -> List[AutocompleteSuggestion]:
        snapshot = self.snapshot(region, language)
        return autocomplete(
            query,
            snapshot.stores,
            snapshot.vouchers,
            limit=limit or self.config.AUTOCOMPLETE_LIMIT,
            min_length=self.config.AUTOCOMPLETE_MIN_LENGTH,
        )

    def trending(
        self, region: str, language: str, limit: Optional[int] = None
    ) -> List[AutocompleteSuggestion]:
        snapshot = self.snapshot(region, language)
        active = [v for v in snapshot.vouchers if v.is_active(self.clock())]
        return trending(snapshot.stores, active, limit=limit or self.config.TRENDING_LIMIT)

    def facets(self, query: str, region: str, language: str, **params: Any) -> SearchFacets:
        """
        Facet counts over the products matching a query.

        Accepts the same filter keywords as ``search``; the result type is
        always products and paging does not apply.
        """
        request = self._build_request(
            dict(params, query=query, region=region, language=language, result_type=ResultType.PRODUCTS)
        )
        snapshot = self.snapshot(region, language)
        intent = self.ranker.parser.parse(request.query)
        ranked, _ = self._ranked(snapshot, intent, request)
        products = [scored.item for scored in ranked if isinstance(scored.item, Product)]
        return build_facets(products, lambda product: self._attributes(snapshot, product))

    def get_stats(self) -> dict:
        with self._lock:
            catalogs = {
                f"{region}/{language}": snapshot.counts()
                for (region, language), snapshot in self._snapshots.items()
            }
        return {
            "catalogs": catalogs,
            "cache": self.cache.get_stats(),
            "ranker": self.ranker.get_stats(),
        }

    # Internals

    def _build_request(self, params: Mapping[str, Any]) -> SearchRequest:
        try:
            return SearchRequest(**params)
        except ValidationError as e:
            error = e.errors()[0]
            field_name = ".".join(str(part) for part in error.get("loc", ())) or "request"
            raise ValidationException(field_name, error.get("input"), error.get("msg", str(e))) from e

    def _ranked(
        self, snapshot: CatalogSnapshot, intent: QueryIntent, request: SearchRequest
    ) -> Tuple[List[ScoredItem], bool]:
        """Full ranked list for the request (cached); returns (results, served_from_cache)."""
        key = CacheKey(
            region=snapshot.region,
            language=snapshot.language,
            query=intent.normalized_query,
            result_filter=request.filter_signature(),
        )
        computed = []

        def compute() -> List[ScoredItem]:
            computed.append(True)
            candidates = self._candidates(snapshot, intent, request)
            return self.ranker.rank(candidates, intent, attributes=snapshot.attributes)

        results = self.cache.get_or_compute(key, compute)
        if request.active_only:
            # Vouchers may expire while their ranking is still cached
            now = self.clock()
            results = [
                r for r in results if not isinstance(r.item, Voucher) or r.item.is_active(now)
            ]
        return results, not computed

    def _candidates(
        self, snapshot: CatalogSnapshot, intent: QueryIntent, request: SearchRequest
    ) -> List[CatalogItem]:
        result_type = request.result_type
        candidates: List[CatalogItem] = []
        if result_type in (ResultType.ALL, ResultType.STORES):
            candidates.extend(request.store_filters().apply(snapshot.stores))
        if result_type in (ResultType.ALL, ResultType.VOUCHERS):
            candidates.extend(request.voucher_filters().apply(snapshot.vouchers, self.clock()))
        if result_type in (ResultType.ALL, ResultType.PRODUCTS):
            candidates.extend(
                request.product_filters().apply(
                    snapshot.products,
                    intent.price_range,
                    brand_of=lambda product: self._attributes(snapshot, product).brand,
                )
            )
        return candidates

    def _attributes(self, snapshot: CatalogSnapshot, item: CatalogItem) -> ExtractedAttributes:
        attributes = snapshot.attributes.get(item.key)
        return attributes or self.ranker.normalizer.attributes_for(item)

    def _corrector(self, snapshot: CatalogSnapshot) -> SpellingCorrector:
        return SpellingCorrector(
            snapshot.vocabulary,
            min_score=self.config.CORRECTION_MIN_SCORE,
            max_corrections=self.config.MAX_CORRECTIONS,
        )

    def _default_limit(self, result_type: ResultType) -> int:
        return {
            ResultType.STORES: self.config.DEFAULT_STORE_LIMIT,
            ResultType.VOUCHERS: self.config.DEFAULT_VOUCHER_LIMIT,
            ResultType.PRODUCTS: self.config.DEFAULT_PRODUCT_LIMIT,
        }.get(result_type, self.config.DEFAULT_ALL_LIMIT)
