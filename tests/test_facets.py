"""
Tests for facet counts.
"""

from decimal import Decimal

import pytest

from catalog_search.domain.entities import Product
from catalog_search.search.facets import build_facets
from catalog_search.search.normalizer import CatalogNormalizer


@pytest.fixture
def attributes_for():
    return CatalogNormalizer().attributes_for


class TestBuildFacets:
    """Test facet aggregation."""

    def test_counts(self, sample_products, attributes_for):
        facets = build_facets(sample_products, attributes_for)

        assert facets.brands == [("Apple", 2), ("Samsung", 1), ("Sony", 1)]
        assert facets.categories == [("Headphones", 2), ("Smartphones", 2), ("TVs", 1)]
        assert facets.capacities == [("256GB", 1), ("512GB", 1)]
        assert facets.colors == [("Black", 2), ("Gray", 1), ("White", 1)]
        assert facets.sizes == [("65inch", 1)]

    def test_price_stats(self, sample_products, attributes_for):
        price = build_facets(sample_products, attributes_for).price

        assert price.min == Decimal("39.99")
        assert price.max == Decimal("1299")
        assert price.avg == Decimal("737.20")

    def test_explicit_brand_wins(self, attributes_for):
        product = Product(id="p1", display_text="Galaxy Case", brand="Spigen")

        assert build_facets([product], attributes_for).brands == [("Spigen", 1)]

    def test_extracted_brand_used_when_missing(self, attributes_for):
        product = Product(id="p1", display_text="Sony WH-1000XM5")

        assert build_facets([product], attributes_for).brands == [("Sony", 1)]

    def test_limit(self, sample_products, attributes_for):
        assert len(build_facets(sample_products, attributes_for, limit=1).brands) == 1

    def test_no_products(self, attributes_for):
        facets = build_facets([], attributes_for)

        assert facets.brands == []
        assert facets.price is None
        assert facets.to_dict()["price"] is None

    def test_to_dict(self, sample_products, attributes_for):
        result = build_facets(sample_products, attributes_for).to_dict()

        assert result["brands"][0] == {"value": "Apple", "count": 2}
        assert result["price"]["min"] == pytest.approx(39.99)
