"""
Attribute extraction for catalog item names.

Pulls brand, model, capacity, color and size out of free text using ordered
pattern tables, and derives a canonical identifier for deduplication plus a
normalized display name.
"""

import logging
import re
from typing import List, Mapping, Optional, Pattern, Sequence, Tuple

from ..domain.entities import ExtractedAttributes
from .dictionaries import (
    APPAREL_CATEGORIES,
    BRAND_ALIASES,
    CAPACITY_UNITS,
    COLORS,
    GARMENT_SIZES,
    MODEL_ALIASES,
    SINGLE_LETTER_SIZES,
    SIZE_UNITS,
)

logger = logging.getLogger(__name__)

UNKNOWN_BRAND = "unknown"
GENERIC_MODEL = "generic"
UNKNOWN_PRODUCT_NAME = "Unknown Product"

PUNCTUATION = re.compile(r"[^\w\s.]|_")
STRAY_DOTS = re.compile(r"(?<!\d)\.|\.(?!\d)")
WHITESPACE = re.compile(r"\s+")

CAPACITY_PATTERN = re.compile(
    r"(?<![\d.])(\d+(?:\.\d+)?)\s*(gigabytes|gigabyte|gb|terabytes|terabyte|tb)(?![a-z])"
)
NUMERIC_SIZE_PATTERN = re.compile(
    r"(?<![\d.])(\d+(?:\.\d+)?)\s*(inches|inch|cm|mm)(?![a-z])"
)


def _alternation(words: Sequence[str]) -> str:
    return "|".join(re.escape(word) for word in words)


GARMENT_SIZE_PATTERN = re.compile(
    r"(?<![a-z0-9])(" + _alternation(GARMENT_SIZES) + r")(?![a-z0-9])"
)
SINGLE_LETTER_SIZE_PATTERN = re.compile(
    r"(?<![a-z0-9])(" + _alternation(SINGLE_LETTER_SIZES) + r")(?![a-z0-9])"
)


def alias_pattern(alias: str) -> Pattern:
    """
    Compile an alias so it only matches on token boundaries.

    The alias may not be glued to a preceding letter or digit. After an alias
    ending in a letter a digit may follow ("iphone15pro"), and after one
    ending in a digit a letter may follow ("s24ultra").
    """
    trailing = r"(?!\d)" if alias[-1].isdigit() else r"(?![a-z])"
    return re.compile(r"(?<![a-z0-9])" + re.escape(alias) + trailing)


def normalize_text(text: Optional[str]) -> str:
    """
    Lowercase, turn punctuation into single spaces and collapse whitespace.

    Decimal points between digits survive so "6.1 inch" keeps its value.

    Examples:
        "Apple iPhone 15 Pro - 256GB, Black" -> "apple iphone 15 pro 256gb black"
    """
    if not text:
        return ""
    normalized = PUNCTUATION.sub(" ", str(text).lower())
    normalized = STRAY_DOTS.sub(" ", normalized)
    return WHITESPACE.sub(" ", normalized).strip()


def _title(value: str) -> str:
    return " ".join(word.capitalize() for word in value.split())


class AttributeExtractor:
    """
    Extract canonical attributes from product names.

    Each attribute is resolved independently and the first match wins:
    - Brand: first alias (in dictionary order) found in the text
    - Model: only when a brand resolved, from that brand's model table
    - Capacity: ``<number><gb|tb|gigabyte|terabyte>`` -> ``"256GB"``
    - Color: fixed vocabulary, multi-word names included, title-cased
    - Size: ``<number><inch|cm|mm>`` or garment sizes, upper-cased

    Extraction never raises; unrecognized text yields ``None`` attributes.
    """

    def __init__(
        self,
        brand_aliases: Mapping[str, Sequence[str]] = BRAND_ALIASES,
        model_aliases: Mapping[str, Mapping[str, Sequence[str]]] = MODEL_ALIASES,
        colors: Sequence[str] = COLORS,
    ):
        self._brands: List[Tuple[str, List[Pattern]]] = [
            (brand, [alias_pattern(alias) for alias in aliases])
            for brand, aliases in brand_aliases.items()
        ]
        self._models = {
            brand.lower(): [
                (model, [alias_pattern(alias) for alias in aliases])
                for model, aliases in models.items()
            ]
            for brand, models in model_aliases.items()
        }
        self._color_pattern = re.compile(
            r"(?<![a-z])(" + _alternation(colors) + r")(?![a-z])"
        )

    def extract(self, text: Optional[str], category_hint: Optional[str] = None) -> ExtractedAttributes:
        """
        Extract all attributes from free text.

        Args:
            text: Item name or query text
            category_hint: Optional category; enables single-letter garment sizes
                for apparel categories and is carried on the result

        Returns:
            ExtractedAttributes with a canonical identifier
        """
        normalized = normalize_text(text)
        if not normalized:
            return ExtractedAttributes(
                category=category_hint, canonical_id=self._canonical_id(None, None, None, None)
            )

        brand = self._extract_brand(normalized)
        model = self._extract_model(normalized, brand)
        capacity = self._extract_capacity(normalized)
        color = self._extract_color(normalized)
        size = self._extract_size(normalized, category_hint)

        attributes = ExtractedAttributes(
            brand=brand,
            model=model,
            capacity=capacity,
            color=color,
            size=size,
            category=category_hint,
            canonical_id=self._canonical_id(brand, model, capacity, color),
        )
        logger.debug(f"Extracted attributes from '{normalized}': {attributes.normalized_name}")
        return attributes

    def extract_brand(self, text: Optional[str]) -> Optional[str]:
        return self._extract_brand(normalize_text(text))

    def extract_model(self, text: Optional[str], brand: Optional[str]) -> Optional[str]:
        return self._extract_model(normalize_text(text), brand)

    def extract_capacity(self, text: Optional[str]) -> Optional[str]:
        return self._extract_capacity(normalize_text(text))

    def extract_color(self, text: Optional[str]) -> Optional[str]:
        return self._extract_color(normalize_text(text))

    def extract_size(self, text: Optional[str], category_hint: Optional[str] = None) -> Optional[str]:
        return self._extract_size(normalize_text(text), category_hint)

    def generate_normalized_name(self, attributes: ExtractedAttributes) -> str:
        """Join the resolved attributes into a display name."""
        return attributes.normalized_name

    def generate_canonical_id(self, attributes: ExtractedAttributes) -> str:
        """Deduplication key: ``brand-model-capacity-color`` slug with placeholders."""
        return self._canonical_id(
            attributes.brand, attributes.model, attributes.capacity, attributes.color
        )

    def _extract_brand(self, normalized: str) -> Optional[str]:
        if not normalized:
            return None
        for brand, patterns in self._brands:
            if any(pattern.search(normalized) for pattern in patterns):
                return brand
        return None

    def _extract_model(self, normalized: str, brand: Optional[str]) -> Optional[str]:
        if not normalized or not brand:
            return None
        for model, patterns in self._models.get(brand.lower(), ()):
            if any(pattern.search(normalized) for pattern in patterns):
                return model
        return None

    def _extract_capacity(self, normalized: str) -> Optional[str]:
        match = CAPACITY_PATTERN.search(normalized)
        if not match:
            return None
        value, unit = match.groups()
        return f"{value}{CAPACITY_UNITS[unit]}"

    def _extract_color(self, normalized: str) -> Optional[str]:
        match = self._color_pattern.search(normalized)
        return _title(match.group(1)) if match else None

    def _extract_size(self, normalized: str, category_hint: Optional[str]) -> Optional[str]:
        match = NUMERIC_SIZE_PATTERN.search(normalized)
        if match:
            value, unit = match.groups()
            return f"{value}{SIZE_UNITS[unit]}"

        match = GARMENT_SIZE_PATTERN.search(normalized)
        if match:
            return match.group(1).upper()

        if category_hint and category_hint.strip().lower() in APPAREL_CATEGORIES:
            match = SINGLE_LETTER_SIZE_PATTERN.search(normalized)
            if match:
                return match.group(1).upper()
        return None

    @staticmethod
    def _canonical_id(
        brand: Optional[str], model: Optional[str], capacity: Optional[str], color: Optional[str]
    ) -> str:
        parts = [brand or UNKNOWN_BRAND, model or GENERIC_MODEL, capacity or "", color or ""]
        slug = "-".join(part for part in parts if part).lower()
        return WHITESPACE.sub("-", slug)


_default_extractor: Optional[AttributeExtractor] = None


def get_attribute_extractor() -> AttributeExtractor:
    """Get or create the shared extractor (its tables are read-only)."""
    global _default_extractor

    if _default_extractor is None:
        _default_extractor = AttributeExtractor()

    return _default_extractor
