"""
Pre-ranking filters and post-ranking sort orders.

Filters narrow the candidate set before scoring; sort orders reorder an
already scored list before it is truncated. All orderings are stable.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, List, Optional

from ..domain.entities import PriceRange, Product, ScoredItem, Store, Voucher


class SortOrder(str, Enum):
    """Orderings the calling surface can request."""

    RELEVANCE = "relevance"
    POPULARITY = "popularity"
    NEWEST = "newest"
    DISCOUNT = "discount"


class _Filters:
    """Cache-key signature shared by the filter sets."""

    def signature(self) -> str:
        """Canonical ``name=value`` list of the fields that differ from their defaults."""
        parts = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value != f.default:
                parts.append(f"{f.name}={value}")
        return ",".join(parts)


@dataclass(frozen=True)
class StoreFilters(_Filters):
    category: Optional[str] = None
    featured: Optional[bool] = None
    has_vouchers: bool = False

    def apply(self, stores: Iterable[Store]) -> List[Store]:
        result = list(stores)
        if self.category:
            wanted = self.category.lower()
            result = [s for s in result if any(c.lower() == wanted for c in s.categories)]
        if self.featured is not None:
            result = [s for s in result if s.is_featured == self.featured]
        if self.has_vouchers:
            result = [s for s in result if s.voucher_count > 0]
        return result


@dataclass(frozen=True)
class VoucherFilters(_Filters):
    """
    Voucher filters.

    Discount bounds compare against the first integer of the discount text,
    so "25% off" counts as 25 and text without a number as 0.
    """

    active_only: bool = True
    store_id: Optional[str] = None
    voucher_type: Optional[str] = None
    exclusive: Optional[bool] = None
    verified: Optional[bool] = None
    min_discount: Optional[int] = None
    max_discount: Optional[int] = None

    def apply(self, vouchers: Iterable[Voucher], now: datetime) -> List[Voucher]:
        result = list(vouchers)
        if self.active_only:
            result = [v for v in result if v.is_active(now)]
        if self.store_id:
            result = [v for v in result if v.store_id == self.store_id]
        if self.voucher_type:
            result = [v for v in result if v.voucher_type == self.voucher_type]
        if self.exclusive is not None:
            result = [v for v in result if v.is_exclusive == self.exclusive]
        if self.verified is not None:
            result = [v for v in result if v.is_verified == self.verified]
        if self.min_discount is not None:
            result = [v for v in result if v.discount_value >= self.min_discount]
        if self.max_discount is not None:
            result = [v for v in result if v.discount_value <= self.max_discount]
        return result


@dataclass(frozen=True)
class ProductFilters(_Filters):
    """Product filters; products without a price are never dropped by a price bound."""

    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    def price_range(self, query_range: Optional[PriceRange] = None) -> Optional[PriceRange]:
        """Explicit bounds override the bounds parsed from the query."""
        low = self.min_price if self.min_price is not None else (query_range.min if query_range else None)
        high = self.max_price if self.max_price is not None else (query_range.max if query_range else None)
        if low is None and high is None:
            return None
        return PriceRange(min=low, max=high)

    def apply(
        self,
        products: Iterable[Product],
        query_range: Optional[PriceRange] = None,
        brand_of: Optional[Callable[[Product], Optional[str]]] = None,
    ) -> List[Product]:
        """
        Narrow products to the requested category, brand and price range.

        The brand matches case-insensitively anywhere in the product's brand.
        Products without an explicit brand are matched on ``brand_of(product)``,
        typically the brand extracted from the name.
        """
        result = list(products)
        if self.category:
            wanted = self.category.lower()
            result = [p for p in result if (p.category or "").lower() == wanted]
        if self.brand:
            wanted = self.brand.lower()
            result = [p for p in result if wanted in _brand_name(p, brand_of).lower()]
        price_range = self.price_range(query_range)
        if price_range is not None:
            result = [p for p in result if price_range.contains(p.price)]
        return result


def _brand_name(product: Product, brand_of: Optional[Callable[[Product], Optional[str]]]) -> str:
    if product.brand:
        return product.brand
    return (brand_of(product) if brand_of else None) or ""


def _created_timestamp(scored: ScoredItem) -> float:
    created_at = scored.item.created_at
    return created_at.timestamp() if created_at else float("-inf")


def _discount(scored: ScoredItem) -> int:
    item = scored.item
    return item.discount_value if isinstance(item, Voucher) else -1


def sort_results(results: Iterable[ScoredItem], order: SortOrder = SortOrder.RELEVANCE) -> List[ScoredItem]:
    """
    Reorder ranked results.

    - relevance: keep the ranker's order
    - popularity: popularity, then related count (vouchers of a store), descending
    - newest: creation time descending, undated items last
    - discount: voucher discount descending, non-vouchers last
    """
    results = list(results)
    order = SortOrder(order)

    if order == SortOrder.POPULARITY:
        results.sort(key=lambda s: (s.item.popularity, s.item.related_count), reverse=True)
    elif order == SortOrder.NEWEST:
        results.sort(key=_created_timestamp, reverse=True)
    elif order == SortOrder.DISCOUNT:
        results.sort(key=_discount, reverse=True)

    return results
