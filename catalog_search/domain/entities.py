"""
Domain entities for catalog search.

Core business objects representing the stores, vouchers and products the
storage collaborator hands to the search core, plus the values the core
derives from them (extracted attributes, query intents, scored results).
These entities are framework-agnostic and contain only business logic.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Tuple


class ItemKind(str, Enum):
    """Kinds of catalog entities the ranker accepts."""

    STORE = "store"
    VOUCHER = "voucher"
    PRODUCT = "product"


class ItemFlag(str, Enum):
    """Business flags that boost an item's relevance."""

    FEATURED = "featured"
    EXCLUSIVE = "exclusive"
    VERIFIED = "verified"


class ResultType(str, Enum):
    """Result-type filter used by the facade and part of every cache key."""

    ALL = "all"
    STORES = "stores"
    VOUCHERS = "vouchers"
    PRODUCTS = "products"


DISCOUNT_NUMBER_PATTERN = re.compile(r"\d+")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so comparisons never mix naive and aware values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    try:
        return _as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _parse_number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _names(values: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    """Accept either plain names or related-entity records carrying a ``name`` key."""
    names = []
    for value in values or ():
        if isinstance(value, Mapping):
            value = value.get("name")
        if value:
            names.append(str(value))
    return tuple(names)


def _flags_from_record(record: Mapping[str, Any]) -> FrozenSet["ItemFlag"]:
    flags = set()
    for raw in record.get("flags") or ():
        try:
            flags.add(ItemFlag(str(raw).lower()))
        except ValueError:
            continue
    if record.get("is_featured"):
        flags.add(ItemFlag.FEATURED)
    if record.get("is_exclusive"):
        flags.add(ItemFlag.EXCLUSIVE)
    if record.get("is_verified"):
        flags.add(ItemFlag.VERIFIED)
    return frozenset(flags)


def _related_count(record: Mapping[str, Any], key: str, count_key: str) -> int:
    if record.get(key) is not None:
        return int(_parse_number(record.get(key)))
    counts = record.get("_count") or {}
    return int(_parse_number(counts.get(count_key)))


# (kind, id): ids are only unique within one kind
ItemKey = Tuple[str, str]


@dataclass(frozen=True)
class CatalogItem:
    """
    Common capability shared by every rankable entity.

    The ranker only relies on this surface: display text, secondary text,
    tags, popularity, flags, timestamps, related entity names and a related
    count. Concrete kinds decide which of their own fields feed the combined
    searchable text.

    Items are immutable for the duration of a search pass; the caller owns
    them and the core only borrows them.
    """

    id: str
    display_text: str = ""
    secondary_text: str = ""
    tags: FrozenSet[str] = frozenset()
    popularity: float = 0.0
    flags: FrozenSet[ItemFlag] = frozenset()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    kind: ClassVar[Optional[ItemKind]] = None

    def __post_init__(self):
        """Coerce loosely typed collaborator values into the canonical shapes."""
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "display_text", self.display_text or "")
        object.__setattr__(self, "secondary_text", self.secondary_text or "")
        object.__setattr__(self, "tags", frozenset(t for t in (self.tags or ()) if t))
        object.__setattr__(self, "flags", frozenset(ItemFlag(f) for f in (self.flags or ())))
        object.__setattr__(self, "popularity", _parse_number(self.popularity))
        object.__setattr__(self, "created_at", _as_utc(self.created_at))
        object.__setattr__(self, "updated_at", _as_utc(self.updated_at))

    @property
    def key(self) -> ItemKey:
        """
        Catalog-wide identity.

        Stores, vouchers and products are numbered independently by storage,
        so the id alone is only unique within one kind.
        """
        return (self.kind.value if self.kind else "item", self.id)

    @property
    def is_featured(self) -> bool:
        return ItemFlag.FEATURED in self.flags

    @property
    def is_exclusive(self) -> bool:
        return ItemFlag.EXCLUSIVE in self.flags

    @property
    def is_verified(self) -> bool:
        return ItemFlag.VERIFIED in self.flags

    @property
    def related_count(self) -> int:
        """Number of related entities (vouchers of a store, sellers of a product)."""
        return 0

    @property
    def category_hint(self) -> Optional[str]:
        return None

    def related_names(self) -> Tuple[str, ...]:
        """Names of related entities that should be searchable with this item."""
        return ()

    def extra_searchable_fields(self) -> Tuple[str, ...]:
        return ()

    def searchable_fields(self) -> List[str]:
        """
        Fields that make up the combined searchable text, in a fixed order.

        Tags are sorted so the joined text does not depend on set iteration order.
        """
        fields = [self.display_text, self.secondary_text]
        fields.extend(self.extra_searchable_fields())
        fields.extend(sorted(self.tags))
        fields.extend(self.related_names())
        return [f for f in fields if f]

    @property
    def searchable_text(self) -> str:
        return " ".join(" ".join(self.searchable_fields()).lower().split())

    def is_fresh(self, now: datetime, window_days: int = 30) -> bool:
        """Check whether the item was created within the freshness window."""
        if self.created_at is None:
            return False
        return now - self.created_at < timedelta(days=window_days)

    def to_dict(self) -> dict:
        """Convert to dictionary for the calling surface."""
        return {
            "id": self.id,
            "kind": self.kind.value if self.kind else None,
            "display_text": self.display_text,
            "secondary_text": self.secondary_text,
            "tags": sorted(self.tags),
            "popularity": self.popularity,
            "flags": sorted(flag.value for flag in self.flags),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class Store(CatalogItem):
    """A merchant whose vouchers are listed in the storefront."""

    slug: str = ""
    categories: Tuple[str, ...] = ()
    voucher_count: int = 0

    kind: ClassVar[Optional[ItemKind]] = ItemKind.STORE

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "categories", tuple(self.categories or ()))

    @property
    def name(self) -> str:
        return self.display_text

    @property
    def related_count(self) -> int:
        return self.voucher_count

    def related_names(self) -> Tuple[str, ...]:
        return self.categories

    def extra_searchable_fields(self) -> Tuple[str, ...]:
        return (self.slug,)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Store":
        """Build a store from a plain storage record."""
        return cls(
            id=record["id"],
            display_text=record.get("name") or "",
            secondary_text=record.get("description") or "",
            tags=frozenset(record.get("tags") or ()),
            popularity=record.get("popularity", record.get("popularity_score", 0)),
            flags=_flags_from_record(record),
            created_at=_parse_datetime(record.get("created_at")),
            updated_at=_parse_datetime(record.get("updated_at")),
            slug=record.get("slug") or "",
            categories=_names(record.get("categories")),
            voucher_count=_related_count(record, "voucher_count", "vouchers"),
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            {
                "name": self.name,
                "slug": self.slug,
                "categories": list(self.categories),
                "voucher_count": self.voucher_count,
            }
        )
        return result


@dataclass(frozen=True)
class Voucher(CatalogItem):
    """A discount code or deal offered by a store."""

    discount: str = ""
    code: str = ""
    voucher_type: str = ""
    store_id: Optional[str] = None
    store_name: str = ""
    categories: Tuple[str, ...] = ()
    expires_at: Optional[datetime] = None

    kind: ClassVar[Optional[ItemKind]] = ItemKind.VOUCHER

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "categories", tuple(self.categories or ()))
        object.__setattr__(self, "expires_at", _as_utc(self.expires_at))
        if self.store_id is not None:
            object.__setattr__(self, "store_id", str(self.store_id))

    @property
    def title(self) -> str:
        return self.display_text

    @property
    def discount_value(self) -> int:
        """First integer found in the discount text (``"25% off"`` -> 25), else 0."""
        match = DISCOUNT_NUMBER_PATTERN.search(self.discount or "")
        return int(match.group(0)) if match else 0

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or self.expires_at >= now

    def related_names(self) -> Tuple[str, ...]:
        return (self.store_name,) + self.categories

    def extra_searchable_fields(self) -> Tuple[str, ...]:
        return (self.discount, self.code, self.voucher_type)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Voucher":
        """Build a voucher from a plain storage record."""
        store = record.get("store") or {}
        return cls(
            id=record["id"],
            display_text=record.get("title") or "",
            secondary_text=record.get("description") or "",
            tags=frozenset(record.get("tags") or ()),
            popularity=record.get("popularity", record.get("popularity_score", 0)),
            flags=_flags_from_record(record),
            created_at=_parse_datetime(record.get("created_at")),
            updated_at=_parse_datetime(record.get("updated_at")),
            discount=record.get("discount") or "",
            code=record.get("code") or "",
            voucher_type=record.get("type") or record.get("voucher_type") or "",
            store_id=record.get("store_id", store.get("id")),
            store_name=record.get("store_name") or store.get("name") or "",
            categories=_names(record.get("categories") or store.get("categories")),
            expires_at=_parse_datetime(record.get("expires_at", record.get("expiry_date"))),
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            {
                "title": self.title,
                "discount": self.discount,
                "code": self.code,
                "type": self.voucher_type,
                "store_id": self.store_id,
                "store_name": self.store_name,
                "categories": list(self.categories),
                "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            }
        )
        return result


@dataclass(frozen=True)
class Product(CatalogItem):
    """A physical product offered by one or more sellers."""

    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    variant: Optional[str] = None
    seller_count: int = 0

    kind: ClassVar[Optional[ItemKind]] = ItemKind.PRODUCT

    def __post_init__(self):
        super().__post_init__()
        if self.price is not None and not isinstance(self.price, Decimal):
            object.__setattr__(self, "price", _parse_decimal(self.price))

    @property
    def name(self) -> str:
        return self.display_text

    @property
    def related_count(self) -> int:
        return self.seller_count

    @property
    def category_hint(self) -> Optional[str]:
        return self.category

    def related_names(self) -> Tuple[str, ...]:
        return tuple(name for name in (self.brand, self.category) if name)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Product":
        """Build a product from a plain storage record."""
        brand = record.get("brand")
        category = record.get("category")
        if isinstance(brand, Mapping):
            brand = brand.get("name")
        if isinstance(category, Mapping):
            category = category.get("name")
        return cls(
            id=record["id"],
            display_text=record.get("name") or "",
            secondary_text=record.get("description") or "",
            tags=frozenset(record.get("tags") or ()),
            popularity=record.get("popularity", record.get("popularity_score", 0)),
            flags=_flags_from_record(record),
            created_at=_parse_datetime(record.get("created_at")),
            updated_at=_parse_datetime(record.get("updated_at")),
            brand=brand or None,
            category=category or None,
            price=_parse_decimal(record.get("price")),
            variant=record.get("variant") or None,
            seller_count=_related_count(record, "seller_count", "sellers"),
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            {
                "name": self.name,
                "brand": self.brand,
                "category": self.category,
                "price": float(self.price) if self.price is not None else None,
                "variant": self.variant,
                "seller_count": self.seller_count,
            }
        )
        return result


@dataclass(frozen=True)
class ExtractedAttributes:
    """
    Canonical attributes derived from an item's free-text name.

    Absent attributes are ``None``; extraction never fails.
    """

    brand: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    category: Optional[str] = None
    variant: Optional[str] = None
    canonical_id: str = "unknown-generic"

    @property
    def normalized_name(self) -> str:
        """Space-joined present attributes, or ``"Unknown Product"`` when none resolved."""
        parts = [
            part
            for part in (self.brand, self.model, self.capacity, self.color, self.size, self.variant)
            if part
        ]
        return " ".join(parts) if parts else "Unknown Product"

    def to_dict(self) -> dict:
        return {
            "brand": self.brand,
            "model": self.model,
            "capacity": self.capacity,
            "color": self.color,
            "size": self.size,
            "category": self.category,
            "variant": self.variant,
            "canonical_id": self.canonical_id,
            "normalized_name": self.normalized_name,
        }


@dataclass(frozen=True)
class PriceRange:
    """Price bounds parsed from a query; either side may be open."""

    min: Optional[Decimal] = None
    max: Optional[Decimal] = None

    def contains(self, price: Optional[Decimal]) -> bool:
        if price is None:
            return True
        if self.min is not None and price < self.min:
            return False
        if self.max is not None and price > self.max:
            return False
        return True


@dataclass(frozen=True)
class QueryIntent:
    """
    Structured interpretation of one raw query.

    Created fresh per query and discarded after ranking.
    """

    raw_query: str = ""
    normalized_query: str = ""
    tokens: Tuple[str, ...] = ()
    expanded_terms: FrozenSet[str] = frozenset()
    brand: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    price_range: Optional[PriceRange] = None
    category_hint: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.normalized_query

    def attribute_hints(self) -> Dict[str, str]:
        hints = {
            "brand": self.brand,
            "model": self.model,
            "capacity": self.capacity,
            "color": self.color,
            "size": self.size,
        }
        return {name: value for name, value in hints.items() if value}


@dataclass(frozen=True)
class ScoredItem:
    """
    A catalog item together with its relevance score.

    Attributes:
        item: The ranked catalog entity
        score: Additive relevance score (never negative)
        match_type: Strongest text signal that fired (exact, prefix, contains,
            text, term, fuzzy, none)
        breakdown: Contribution of every signal, for auditing a ranking
    """

    item: CatalogItem
    score: float
    match_type: str = "none"
    breakdown: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.score < 0:
            raise ValueError("Relevance score must not be negative")

    @property
    def id(self) -> str:
        return self.item.id

    def to_dict(self) -> dict:
        """Convert to dictionary: the item's fields plus score and relevance details."""
        result = self.item.to_dict()
        result["score"] = round(self.score, 2)
        result["_relevance"] = {
            "match_type": self.match_type,
            "signals": {name: round(value, 2) for name, value in self.breakdown.items()},
        }
        return result


@dataclass(frozen=True)
class SpellingCorrection:
    """A "did you mean" proposal for one query token."""

    term: str
    suggestion: str
    kind: str
    confidence: float
    count: int = 0

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "suggestion": self.suggestion,
            "type": self.kind,
            "confidence": round(self.confidence, 3),
            "count": self.count,
        }


@dataclass(frozen=True)
class AutocompleteSuggestion:
    """An autocomplete or trending entry pointing at a store, voucher or category."""

    text: str
    kind: str
    item_id: Optional[str] = None
    slug: Optional[str] = None

    def to_dict(self) -> dict:
        return {"text": self.text, "type": self.kind, "id": self.item_id, "slug": self.slug}


class CacheKey(NamedTuple):
    """Composite cache key: (region, language, normalized query, result-type filter)."""

    region: str
    language: str
    query: str
    result_filter: str = ResultType.ALL.value


@dataclass(frozen=True)
class CacheEntry:
    """A fully written, immutable result set stored in the search cache."""

    key: CacheKey
    results: Tuple[ScoredItem, ...]
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return self.age(now) >= ttl_seconds
