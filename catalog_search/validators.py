"""
Input validation and Pydantic models for catalog search.

This module provides the request model the calling surface hands to the
service facade, plus the helpers that turn it into filter sets.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .core.config import settings
from .domain.entities import ResultType
from .search.filters import ProductFilters, SortOrder, StoreFilters, VoucherFilters

# Validation patterns
LOCALE_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_\-]{0,15}$")

MAX_QUERY_LENGTH = 200


class SearchRequest(BaseModel):
    """
    Request model for a catalog search.

    Attributes:
        query: Free-text query; empty ranks by business signals only
        region: Catalog region (e.g. "us", "de")
        language: Catalog language (e.g. "en", "de")
        result_type: Which kinds to rank (all, stores, vouchers, products)
        sort: Post-ranking order (relevance, popularity, newest, discount)
        limit: Result window; defaults per result type when omitted
        page: 1-based page of the result window
        include_corrections: Offer "did you mean" proposals for small result sets
    """

    query: str = Field(default="", max_length=MAX_QUERY_LENGTH)
    region: str = Field(default="global")
    language: str = Field(default="en")
    result_type: ResultType = ResultType.ALL
    sort: SortOrder = SortOrder.RELEVANCE
    limit: Optional[int] = Field(default=None, ge=1)
    page: int = Field(default=1, ge=1)
    include_corrections: bool = True

    # Store filters
    category: Optional[str] = None
    featured: Optional[bool] = None
    has_vouchers: bool = False

    # Voucher filters
    active_only: bool = True
    store_id: Optional[str] = None
    voucher_type: Optional[str] = None
    exclusive: Optional[bool] = None
    verified: Optional[bool] = None
    min_discount: Optional[int] = Field(default=None, ge=0)
    max_discount: Optional[int] = Field(default=None, ge=0)

    # Product filters
    brand: Optional[str] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("query", mode="before")
    @classmethod
    def normalize_query(cls, v: Optional[str]) -> str:
        """Treat None as an empty query and strip surrounding whitespace."""
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("region", "language")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        """
        Validate a region or language code.

        Raises:
            ValueError: If the code is empty or contains unexpected characters
        """
        v = v.strip().lower()
        if not LOCALE_PATTERN.match(v):
            raise ValueError(f"Invalid locale code: {v!r}")
        return v

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > settings.MAX_RESULT_LIMIT:
            raise ValueError(f"limit must not exceed {settings.MAX_RESULT_LIMIT}")
        return v

    @field_validator("category", "store_id", "voucher_type", "brand")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def validate_bounds(self) -> "SearchRequest":
        if (
            self.min_discount is not None
            and self.max_discount is not None
            and self.min_discount > self.max_discount
        ):
            raise ValueError("min_discount must not exceed max_discount")
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price must not exceed max_price")
        return self

    def store_filters(self) -> StoreFilters:
        return StoreFilters(
            category=self.category, featured=self.featured, has_vouchers=self.has_vouchers
        )

    def voucher_filters(self) -> VoucherFilters:
        return VoucherFilters(
            active_only=self.active_only,
            store_id=self.store_id,
            voucher_type=self.voucher_type,
            exclusive=self.exclusive,
            verified=self.verified,
            min_discount=self.min_discount,
            max_discount=self.max_discount,
        )

    def product_filters(self) -> ProductFilters:
        return ProductFilters(
            category=self.category,
            brand=self.brand,
            min_price=self.min_price,
            max_price=self.max_price,
        )

    def filter_signature(self) -> str:
        """
        Result-type filter component of the cache key.

        Sort order and paging are applied after the cache, so they are not part of it.
        """
        return "|".join(
            [
                self.result_type.value,
                self.store_filters().signature(),
                self.voucher_filters().signature(),
                self.product_filters().signature(),
            ]
        )
