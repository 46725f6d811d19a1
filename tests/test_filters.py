"""
Tests for pre-ranking filters and post-ranking sort orders.
"""

from decimal import Decimal

import pytest

from catalog_search.domain.entities import PriceRange, Product, ScoredItem, Store
from catalog_search.search.filters import (
    ProductFilters,
    SortOrder,
    StoreFilters,
    VoucherFilters,
    sort_results,
)


def ids(items):
    return [item.id for item in items]


class TestStoreFilters:
    """Test store filters."""

    def test_no_filters(self, sample_stores):
        assert ids(StoreFilters().apply(sample_stores)) == ids(sample_stores)

    def test_category_is_case_insensitive(self, sample_stores):
        result = StoreFilters(category="electronics").apply(sample_stores)

        assert ids(result) == ["store-samsung", "store-apple"]

    def test_featured(self, sample_stores):
        assert ids(StoreFilters(featured=True).apply(sample_stores)) == ["store-nike", "store-samsung"]
        assert ids(StoreFilters(featured=False).apply(sample_stores)) == ["store-apple", "store-booking"]

    def test_has_vouchers(self, sample_stores):
        result = StoreFilters(has_vouchers=True).apply(sample_stores)

        assert "store-booking" not in ids(result)


class TestVoucherFilters:
    """Test voucher filters."""

    def test_active_only_by_default(self, sample_vouchers, now):
        result = VoucherFilters().apply(sample_vouchers, now)

        assert "voucher-booking-summer" not in ids(result)
        assert len(result) == 3

    def test_include_expired(self, sample_vouchers, now):
        assert len(VoucherFilters(active_only=False).apply(sample_vouchers, now)) == 4

    def test_store_and_type(self, sample_vouchers, now):
        result = VoucherFilters(store_id="store-nike", voucher_type="code").apply(sample_vouchers, now)

        assert ids(result) == ["voucher-nike-run20"]

    def test_flags(self, sample_vouchers, now):
        assert ids(VoucherFilters(exclusive=True, verified=True).apply(sample_vouchers, now)) == [
            "voucher-samsung-galaxy15"
        ]

    def test_discount_bounds(self, sample_vouchers, now):
        """Test bounds compare against the number in the discount text."""
        result = VoucherFilters(min_discount=10, max_discount=18).apply(sample_vouchers, now)

        assert ids(result) == ["voucher-samsung-galaxy15"]


class TestProductFilters:
    """Test product filters."""

    def test_category_and_brand(self, sample_products):
        result = ProductFilters(category="smartphones", brand="SAMSUNG").apply(sample_products)

        assert ids(result) == ["prod-galaxy-s24-ultra"]

    def test_brand_matches_partial_name(self):
        product = Product(id="p1", display_text="Galaxy Buds", brand="Samsung Electronics")

        assert ProductFilters(brand="samsung").apply([product]) == [product]

    def test_brand_falls_back_to_extracted_brand(self):
        """Test a product whose brand only appears in its name is kept."""
        named = Product(id="p1", display_text="Apple iPhone 15")
        unnamed = Product(id="p2", display_text="Phone Case")
        extracted = {"p1": "Apple"}

        result = ProductFilters(brand="apple").apply(
            [named, unnamed], brand_of=lambda product: extracted.get(product.id)
        )

        assert result == [named]

    def test_brand_without_extraction_needs_explicit_brand(self):
        assert ProductFilters(brand="apple").apply([Product(id="p1", display_text="Apple iPhone 15")]) == []

    def test_query_price_range(self, sample_products):
        result = ProductFilters().apply(sample_products, PriceRange(max=Decimal("300")))

        assert ids(result) == ["prod-airpods-pro", "prod-budget-earbuds"]

    def test_explicit_bounds_override_query(self):
        price_range = ProductFilters(max_price=Decimal("1000")).price_range(
            PriceRange(min=Decimal("100"), max=Decimal("200"))
        )

        assert price_range == PriceRange(min=Decimal("100"), max=Decimal("1000"))

    def test_no_bounds(self):
        assert ProductFilters().price_range(None) is None

    def test_products_without_price_are_kept(self):
        product = Product(id="p1", display_text="Mystery Box")

        assert ProductFilters(max_price=Decimal("10")).apply([product]) == [product]


class TestSignature:
    """Test cache-key signatures."""

    def test_defaults_are_empty(self):
        assert StoreFilters().signature() == ""
        assert VoucherFilters().signature() == ""

    def test_non_defaults_in_field_order(self):
        signature = VoucherFilters(active_only=False, min_discount=10).signature()

        assert signature == "active_only=False,min_discount=10"


class TestSortResults:
    """Test post-ranking orders."""

    @pytest.fixture
    def scored(self, sample_stores, sample_vouchers):
        items = sample_stores + sample_vouchers
        return [ScoredItem(item=item, score=float(len(items) - i)) for i, item in enumerate(items)]

    def test_relevance_keeps_order(self, scored):
        assert ids(sort_results(scored)) == ids(scored)

    def test_popularity(self, scored):
        result = ids(sort_results(scored, SortOrder.POPULARITY))

        assert result[:3] == ["voucher-booking-summer", "store-apple", "store-samsung"]

    def test_newest_puts_undated_last(self, scored):
        result = ids(sort_results(scored, "newest"))

        assert result[:2] == ["voucher-samsung-galaxy15", "voucher-nike-run20"]
        assert set(result[-3:]) == {"store-apple", "store-booking", "voucher-booking-summer"}

    def test_discount(self, scored):
        result = ids(sort_results(scored, SortOrder.DISCOUNT))

        assert result[:3] == ["voucher-booking-summer", "voucher-nike-run20", "voucher-samsung-galaxy15"]
        assert all(isinstance(s.item, Store) for s in sort_results(scored, SortOrder.DISCOUNT)[-4:])

    def test_invalid_order(self, scored):
        with pytest.raises(ValueError):
            sort_results(scored, "cheapest")
