"""
Tests for domain entities.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog_search.domain.entities import (
    CacheEntry,
    CacheKey,
    ExtractedAttributes,
    ItemFlag,
    ItemKind,
    PriceRange,
    Product,
    QueryIntent,
    ScoredItem,
    Store,
    Voucher,
)


class TestCatalogItem:
    """Test the shared item surface."""

    def test_flags_from_strings(self):
        store = Store(id="s1", display_text="Nike", flags=frozenset({"featured", "verified"}))

        assert store.is_featured
        assert store.is_verified
        assert not store.is_exclusive

    def test_searchable_text_is_deterministic(self):
        """Test tags are joined in sorted order."""
        store = Store(
            id="s1",
            display_text="Nike",
            secondary_text="Sportswear",
            slug="nike",
            tags=frozenset({"running", "football"}),
            categories=("Shoes",),
        )

        assert store.searchable_text == "nike sportswear nike football running shoes"

    def test_missing_fields_are_empty(self):
        store = Store(id=7, display_text=None, popularity=None)

        assert store.id == "7"
        assert store.display_text == ""
        assert store.popularity == 0.0
        assert store.searchable_text == ""

    def test_naive_datetimes_are_utc(self):
        store = Store(id="s1", created_at=datetime(2026, 1, 1))

        assert store.created_at.tzinfo == timezone.utc

    def test_freshness(self):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)
        store = Store(id="s1", created_at=now - timedelta(days=29))

        assert store.is_fresh(now)
        assert not store.is_fresh(now, window_days=7)
        assert not Store(id="s2").is_fresh(now)


class TestStore:
    def test_from_record(self):
        store = Store.from_record(
            {
                "id": 42,
                "name": "Nike",
                "description": "Sportswear",
                "slug": "nike",
                "is_featured": True,
                "categories": [{"name": "Shoes"}, "Fashion"],
                "_count": {"vouchers": 12},
                "created_at": "2026-01-01T00:00:00Z",
            }
        )

        assert store.id == "42"
        assert store.kind == ItemKind.STORE
        assert store.is_featured
        assert store.categories == ("Shoes", "Fashion")
        assert store.related_count == 12
        assert store.created_at == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_to_dict(self):
        result = Store(id="s1", display_text="Nike", slug="nike").to_dict()

        assert result["kind"] == "store"
        assert result["name"] == "Nike"
        assert result["slug"] == "nike"


class TestVoucher:
    def test_discount_value(self):
        assert Voucher(id="v1", discount="25% off").discount_value == 25
        assert Voucher(id="v2", discount="Free shipping").discount_value == 0

    def test_is_active(self):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        assert Voucher(id="v1").is_active(now)
        assert Voucher(id="v2", expires_at=now).is_active(now)
        assert not Voucher(id="v3", expires_at=now - timedelta(seconds=1)).is_active(now)

    def test_from_record_with_store(self):
        voucher = Voucher.from_record(
            {
                "id": "v1",
                "title": "20% off",
                "discount": "20%",
                "type": "code",
                "store": {"id": 3, "name": "Nike", "categories": [{"name": "Shoes"}]},
                "expiry_date": "2026-12-31T00:00:00",
                "flags": ["exclusive", "bogus"],
            }
        )

        assert voucher.store_id == "3"
        assert voucher.store_name == "Nike"
        assert voucher.categories == ("Shoes",)
        assert voucher.voucher_type == "code"
        assert voucher.is_exclusive
        assert voucher.expires_at.tzinfo == timezone.utc
        assert "nike" in voucher.searchable_text


class TestProduct:
    def test_from_record(self):
        product = Product.from_record(
            {
                "id": "p1",
                "name": "Galaxy S24",
                "brand": {"name": "Samsung"},
                "category": {"name": "Smartphones"},
                "price": "899.99",
                "_count": {"sellers": 3},
            }
        )

        assert product.brand == "Samsung"
        assert product.category == "Smartphones"
        assert product.category_hint == "Smartphones"
        assert product.price == Decimal("899.99")
        assert product.related_count == 3
        assert product.searchable_text == "galaxy s24 samsung smartphones"

    def test_invalid_price(self):
        assert Product.from_record({"id": "p1", "price": "n/a"}).price is None

    def test_to_dict(self):
        result = Product(id="p1", display_text="TV", price=Decimal("10.50")).to_dict()

        assert result["kind"] == "product"
        assert result["price"] == 10.5


class TestValueObjects:
    """Test derived values."""

    def test_normalized_name(self):
        assert ExtractedAttributes().normalized_name == "Unknown Product"
        assert ExtractedAttributes(brand="Apple", color="Black").normalized_name == "Apple Black"

    def test_price_range(self):
        price_range = PriceRange(min=Decimal("10"), max=Decimal("20"))

        assert price_range.contains(Decimal("10"))
        assert price_range.contains(Decimal("20"))
        assert not price_range.contains(Decimal("20.01"))
        assert price_range.contains(None)

    def test_query_intent_hints(self):
        intent = QueryIntent(normalized_query="apple", brand="Apple")

        assert not intent.is_empty
        assert intent.attribute_hints() == {"brand": "Apple"}
        assert QueryIntent().is_empty

    def test_scored_item_rejects_negative_scores(self):
        with pytest.raises(ValueError):
            ScoredItem(item=Store(id="s1"), score=-1)

    def test_scored_item_to_dict(self):
        scored = ScoredItem(
            item=Store(id="s1", display_text="Nike"),
            score=1500.0,
            match_type="exact",
            breakdown={"exact": 1000, "text": 400, "terms": 100},
        )

        result = scored.to_dict()

        assert result["id"] == "s1"
        assert result["score"] == 1500.0
        assert result["_relevance"]["match_type"] == "exact"
        assert result["_relevance"]["signals"]["exact"] == 1000

    def test_cache_key_default_filter(self):
        assert CacheKey("us", "en", "nike").result_filter == "all"

    def test_cache_entry_expiry_boundary(self):
        entry = CacheEntry(key=CacheKey("us", "en", "nike"), results=(), created_at=100.0)

        assert not entry.is_expired(399.9, 300)
        assert entry.is_expired(400.0, 300)
        assert entry.age(150.0) == 50.0


class TestFlags:
    def test_flag_values(self):
        assert ItemFlag("featured") is ItemFlag.FEATURED
