"""
Search suggestions: spelling corrections, autocomplete and trending entries.

Corrections are proposed, never applied: the ranker always runs the query
as typed, and the calling surface decides whether to offer "did you mean".
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..domain.entities import (
    AutocompleteSuggestion,
    CatalogItem,
    Product,
    SpellingCorrection,
    Store,
    Voucher,
)
from .attribute_extractor import normalize_text
from .dictionaries import STOP_WORDS
from .string_metrics import fuzzy_match_score, single_edit_variants

logger = logging.getLogger(__name__)

BRAND = "brand"
CATEGORY = "category"
TERM = "term"

# Relative trust in each vocabulary kind when ordering corrections
KIND_WEIGHTS = {BRAND: 0.9, CATEGORY: 0.8, TERM: 0.7}
CONFIDENCE_WEIGHT = 0.7
POPULARITY_WEIGHT = 0.3
POPULARITY_SATURATION = 1000

MIN_TERM_LENGTH = 3
DEFAULT_MIN_SCORE = 60
DEFAULT_MAX_CORRECTIONS = 3

DEFAULT_AUTOCOMPLETE_LIMIT = 8
DEFAULT_AUTOCOMPLETE_MIN_LENGTH = 2
TRENDING_STORES = 5
TRENDING_VOUCHERS = 5
DEFAULT_TRENDING_LIMIT = 10


@dataclass
class VocabularyEntry:
    """A known word with its original spelling and how many items use it."""

    original: str
    kind: str
    count: int = 0


class VocabularyIndex:
    """
    Words known to the catalog, used as the correction dictionary.

    Brands are product brands and store names, categories come from every
    item kind, and terms are the words (3+ chars) of item names.
    """

    def __init__(self):
        self._entries: Dict[str, Dict[str, VocabularyEntry]] = {BRAND: {}, CATEGORY: {}, TERM: {}}

    @classmethod
    def build(cls, items: Iterable[CatalogItem]) -> "VocabularyIndex":
        index = cls()
        for item in items:
            index.add_item(item)
        logger.debug(f"Built vocabulary index with {len(index)} entries")
        return index

    def add_item(self, item: CatalogItem):
        if isinstance(item, Product):
            self._add(BRAND, item.brand)
            self._add(CATEGORY, item.category)
        elif isinstance(item, Store):
            self._add(BRAND, item.name)
            for category in item.categories:
                self._add(CATEGORY, category)
        elif isinstance(item, Voucher):
            for category in item.categories:
                self._add(CATEGORY, category)

        for word in normalize_text(item.display_text).split():
            if len(word) >= MIN_TERM_LENGTH:
                self._add(TERM, word)

    def _add(self, kind: str, value: Optional[str]):
        if not value:
            return
        key = normalize_text(value)
        if not key:
            return
        entries = self._entries[kind]
        entry = entries.get(key)
        if entry is None:
            entry = entries[key] = VocabularyEntry(original=value, kind=kind)
        entry.count += 1

    def contains(self, word: str) -> bool:
        key = normalize_text(word)
        return any(key in entries for entries in self._entries.values())

    def entries(self) -> Iterator[Tuple[str, VocabularyEntry]]:
        """Yield (normalized key, entry) for brands, then categories, then terms."""
        for kind in (BRAND, CATEGORY, TERM):
            yield from self._entries[kind].items()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())


class SpellingCorrector:
    """
    "Did you mean" proposals for query tokens the catalog does not know.

    For every token (3+ chars, not a stop word, not already a known word)
    each vocabulary word that does not already contain the token is a
    candidate when its fuzzy_match_score reaches ``min_score`` or when it
    is one of the token's single-edit or keyboard-neighbour variants.
    Candidates are ordered by kind weight x confidence x 0.7 plus
    min(count / 1000, 1) x 0.3.
    """

    def __init__(
        self,
        vocabulary: VocabularyIndex,
        min_score: int = DEFAULT_MIN_SCORE,
        max_corrections: int = DEFAULT_MAX_CORRECTIONS,
    ):
        self.vocabulary = vocabulary
        self.min_score = min_score
        self.max_corrections = max_corrections

    def suggest(self, query: Optional[str]) -> List[SpellingCorrection]:
        candidates: List[Tuple[float, SpellingCorrection]] = []

        for token in normalize_text(query).split():
            if len(token) < MIN_TERM_LENGTH or token in STOP_WORDS:
                continue
            if self.vocabulary.contains(token):
                continue
            candidates.extend(self._candidates(token))

        # Stable sort: equal ranks keep vocabulary order
        candidates.sort(key=lambda candidate: candidate[0], reverse=True)

        corrections = []
        seen = set()
        for _, correction in candidates:
            key = correction.suggestion.lower()
            if key in seen:
                continue
            seen.add(key)
            corrections.append(correction)
            if len(corrections) >= self.max_corrections:
                break

        if corrections:
            logger.debug(f"Corrections for '{query}': {[c.suggestion for c in corrections]}")
        return corrections

    def _candidates(self, token: str) -> Iterator[Tuple[float, SpellingCorrection]]:
        variants = single_edit_variants(token)
        for key, entry in self.vocabulary.entries():
            if token in key:
                continue
            score = fuzzy_match_score(token, key)
            if score < self.min_score and key not in variants:
                continue
            confidence = score / 100
            rank = (
                KIND_WEIGHTS[entry.kind] * confidence * CONFIDENCE_WEIGHT
                + min(entry.count / POPULARITY_SATURATION, 1.0) * POPULARITY_WEIGHT
            )
            yield rank, SpellingCorrection(
                term=token,
                suggestion=entry.original,
                kind=entry.kind,
                confidence=confidence,
                count=entry.count,
            )


def autocomplete(
    query: Optional[str],
    stores: Sequence[Store],
    vouchers: Sequence[Voucher],
    limit: int = DEFAULT_AUTOCOMPLETE_LIMIT,
    min_length: int = DEFAULT_AUTOCOMPLETE_MIN_LENGTH,
) -> List[AutocompleteSuggestion]:
    """
    Suggestions for a partially typed query.

    Matches store names, then voucher titles (falling back to the discount
    text and the store name), then store categories. Duplicates by kind and
    text are dropped.
    """
    needle = normalize_text(query)
    if len(needle) < min_length:
        return []

    suggestions: List[AutocompleteSuggestion] = []
    seen = set()

    def add(suggestion: AutocompleteSuggestion):
        key = (suggestion.kind, suggestion.text.lower())
        if key not in seen:
            seen.add(key)
            suggestions.append(suggestion)

    for store in stores:
        if needle in normalize_text(store.name):
            add(AutocompleteSuggestion(text=store.name, kind="store", item_id=store.id, slug=store.slug))

    for voucher in vouchers:
        if needle in normalize_text(voucher.title):
            add(AutocompleteSuggestion(text=voucher.title, kind="voucher", item_id=voucher.id))
        elif voucher.discount and needle in normalize_text(voucher.discount):
            add(AutocompleteSuggestion(text=voucher.discount, kind="discount", item_id=voucher.id))
        elif voucher.store_name and needle in normalize_text(voucher.store_name):
            add(
                AutocompleteSuggestion(
                    text=f"{voucher.store_name} - {voucher.title}", kind="voucher", item_id=voucher.id
                )
            )

    for store in stores:
        for category in store.categories:
            if needle in normalize_text(category):
                add(AutocompleteSuggestion(text=category, kind="category"))

    return suggestions[:limit]


def trending(
    stores: Sequence[Store],
    vouchers: Sequence[Voucher],
    limit: int = DEFAULT_TRENDING_LIMIT,
) -> List[AutocompleteSuggestion]:
    """
    Entries to show before anything is typed.

    Up to five featured stores in catalog order, then up to five exclusive
    or verified vouchers: exclusive ones first, then by popularity.
    """
    entries = [
        AutocompleteSuggestion(text=store.name, kind="store", item_id=store.id, slug=store.slug)
        for store in stores
        if store.is_featured
    ][:TRENDING_STORES]

    highlighted = [v for v in vouchers if v.is_exclusive or v.is_verified]
    highlighted.sort(key=lambda v: (not v.is_exclusive, -v.popularity))
    entries.extend(
        AutocompleteSuggestion(text=voucher.title, kind="voucher", item_id=voucher.id)
        for voucher in highlighted[:TRENDING_VOUCHERS]
    )

    return entries[:limit]
