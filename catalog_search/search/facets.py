"""
Facet counts over product results for filter sidebars.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..domain.entities import ExtractedAttributes, Product

MAX_FACET_VALUES = 20

FacetCounts = List[Tuple[str, int]]


@dataclass(frozen=True)
class PriceStats:
    min: Decimal
    max: Decimal
    avg: Decimal

    def to_dict(self) -> dict:
        return {"min": float(self.min), "max": float(self.max), "avg": float(self.avg)}


@dataclass(frozen=True)
class SearchFacets:
    brands: FacetCounts = field(default_factory=list)
    categories: FacetCounts = field(default_factory=list)
    capacities: FacetCounts = field(default_factory=list)
    colors: FacetCounts = field(default_factory=list)
    sizes: FacetCounts = field(default_factory=list)
    price: Optional[PriceStats] = None

    def to_dict(self) -> dict:
        def counts(values: FacetCounts) -> List[dict]:
            return [{"value": value, "count": count} for value, count in values]

        return {
            "brands": counts(self.brands),
            "categories": counts(self.categories),
            "capacities": counts(self.capacities),
            "colors": counts(self.colors),
            "sizes": counts(self.sizes),
            "price": self.price.to_dict() if self.price else None,
        }


def _top(counter: Counter, limit: int) -> FacetCounts:
    return sorted(counter.items(), key=lambda entry: (-entry[1], entry[0]))[:limit]


def build_facets(
    products: Iterable[Product],
    attributes_for: Callable[[Product], ExtractedAttributes],
    limit: int = MAX_FACET_VALUES,
) -> SearchFacets:
    """
    Count attribute values across products.

    The explicit product brand wins over the extracted one. Values are
    ordered by count descending, then alphabetically. Price statistics only
    cover products that have a price.
    """
    brands: Counter = Counter()
    categories: Counter = Counter()
    capacities: Counter = Counter()
    colors: Counter = Counter()
    sizes: Counter = Counter()
    prices: List[Decimal] = []

    for product in products:
        attributes = attributes_for(product)
        brand = product.brand or attributes.brand
        if brand:
            brands[brand] += 1
        if product.category:
            categories[product.category] += 1
        if attributes.capacity:
            capacities[attributes.capacity] += 1
        if attributes.color:
            colors[attributes.color] += 1
        if attributes.size:
            sizes[attributes.size] += 1
        if product.price is not None:
            prices.append(product.price)

    price = None
    if prices:
        average = (sum(prices) / len(prices)).quantize(Decimal("0.01"))
        price = PriceStats(min=min(prices), max=max(prices), avg=average)

    return SearchFacets(
        brands=_top(brands, limit),
        categories=_top(categories, limit),
        capacities=_top(capacities, limit),
        colors=_top(colors, limit),
        sizes=_top(sizes, limit),
        price=price,
    )
