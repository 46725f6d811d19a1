"""
Test configuration and fixtures
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog_search.cache.search_cache import SearchCache
from catalog_search.core.config import Settings
from catalog_search.domain.entities import ItemFlag, Product, Store, Voucher
from catalog_search.search.relevance_ranker import RelevanceRanker
from catalog_search.services.catalog_search_service import CatalogSearchService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def now():
    """Fixed wall-clock time used by rankers and services under test"""
    return NOW


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def ranker():
    """Ranker with a frozen clock"""
    return RelevanceRanker(clock=lambda: NOW)


@pytest.fixture
def sample_stores():
    """Sample stores for testing"""
    return [
        Store(
            id="store-nike",
            display_text="Nike",
            secondary_text="Sportswear and sneakers",
            slug="nike",
            categories=("Fashion", "Shoes"),
            voucher_count=12,
            popularity=500,
            flags=frozenset({ItemFlag.FEATURED}),
            created_at=NOW - timedelta(days=90),
        ),
        Store(
            id="store-samsung",
            display_text="Samsung",
            secondary_text="Phones, TVs and appliances",
            slug="samsung",
            categories=("Electronics",),
            voucher_count=8,
            popularity=800,
            flags=frozenset({ItemFlag.FEATURED, ItemFlag.VERIFIED}),
            created_at=NOW - timedelta(days=10),
        ),
        Store(
            id="store-apple",
            display_text="Apple Store",
            secondary_text="iPhone, iPad and Mac",
            slug="apple-store",
            categories=("Electronics",),
            voucher_count=5,
            popularity=900,
        ),
        Store(
            id="store-booking",
            display_text="Booking.com",
            secondary_text="Hotels and travel deals",
            slug="booking",
            categories=("Travel",),
            popularity=300,
        ),
    ]


@pytest.fixture
def sample_vouchers():
    """Sample vouchers for testing; the last one has expired"""
    return [
        Voucher(
            id="voucher-nike-run20",
            display_text="20% off running shoes",
            discount="20% off",
            code="RUN20",
            voucher_type="code",
            store_id="store-nike",
            store_name="Nike",
            categories=("Shoes",),
            popularity=150,
            flags=frozenset({ItemFlag.EXCLUSIVE}),
            expires_at=NOW + timedelta(days=30),
            created_at=NOW - timedelta(days=5),
        ),
        Voucher(
            id="voucher-nike-shipping",
            display_text="Free shipping on all orders",
            discount="Free shipping",
            voucher_type="deal",
            store_id="store-nike",
            store_name="Nike",
            popularity=400,
            flags=frozenset({ItemFlag.VERIFIED}),
            created_at=NOW - timedelta(days=60),
        ),
        Voucher(
            id="voucher-samsung-galaxy15",
            display_text="Galaxy S24 launch deal",
            discount="15% off",
            code="GALAXY15",
            voucher_type="code",
            store_id="store-samsung",
            store_name="Samsung",
            popularity=90,
            flags=frozenset({ItemFlag.EXCLUSIVE, ItemFlag.VERIFIED}),
            expires_at=NOW + timedelta(days=10),
            created_at=NOW - timedelta(days=2),
        ),
        Voucher(
            id="voucher-booking-summer",
            display_text="Summer sale 50% off",
            discount="50% off",
            voucher_type="deal",
            store_id="store-booking",
            store_name="Booking.com",
            popularity=1000,
            expires_at=NOW - timedelta(days=1),
        ),
    ]


@pytest.fixture
def sample_products():
    """Sample products for testing"""
    return [
        Product(
            id="prod-iphone-15-pro",
            display_text="Apple iPhone 15 Pro — 256GB, Black",
            brand="Apple",
            category="Smartphones",
            price=Decimal("1199.00"),
            seller_count=4,
            popularity=700,
        ),
        Product(
            id="prod-galaxy-s24-ultra",
            display_text="Samsung Galaxy S24 Ultra 512GB Titanium Gray",
            brand="Samsung",
            category="Smartphones",
            price=Decimal("1299.00"),
            seller_count=3,
            popularity=650,
        ),
        Product(
            id="prod-airpods-pro",
            display_text="Apple AirPods Pro White",
            brand="Apple",
            category="Headphones",
            price=Decimal("249.00"),
            seller_count=6,
            popularity=400,
        ),
        Product(
            id="prod-sony-bravia",
            display_text="Sony Bravia 65 inch 4K TV",
            brand="Sony",
            category="TVs",
            price=Decimal("899.00"),
            seller_count=2,
            popularity=200,
        ),
        Product(
            id="prod-budget-earbuds",
            display_text="Wireless Earbuds Black",
            category="Headphones",
            price=Decimal("39.99"),
            seller_count=1,
            popularity=50,
        ),
    ]


@pytest.fixture
def search_cache(fake_clock):
    """Fresh result cache on a fake clock"""
    return SearchCache(ttl_seconds=300, max_entries=100, clock=fake_clock)


@pytest.fixture
def service(search_cache, sample_stores, sample_vouchers, sample_products):
    """Service with the sample catalog loaded for us/en"""
    service = CatalogSearchService(
        cache=search_cache,
        ranker=RelevanceRanker(clock=lambda: NOW),
        config=Settings(),
        clock=lambda: NOW,
    )
    service.load_catalog(
        "us",
        "en",
        stores=sample_stores,
        vouchers=sample_vouchers,
        products=sample_products,
    )
    return service
