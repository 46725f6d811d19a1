"""
Batch normalization of catalog items.

Runs the attribute extractor over a catalog once per record-set change and
memoizes the result per item. Attributes are only recomputed when an item's
source text changes, and an interrupted pass can simply be run again: every
item is normalized independently, so whatever finished stays valid.
"""

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from ..domain.entities import CatalogItem, ExtractedAttributes, ItemKey, Product
from .attribute_extractor import AttributeExtractor, get_attribute_extractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationReport:
    """Outcome of one normalization pass."""

    total: int
    extracted: int
    reused: int
    completed: bool
    duration_seconds: float

    @property
    def processed(self) -> int:
        return self.extracted + self.reused


def _source_key(item: CatalogItem) -> Tuple[str, ...]:
    """Everything extraction reads from an item; a change here forces re-extraction."""
    if isinstance(item, Product):
        return (item.display_text, item.category or "", item.brand or "", item.variant or "")
    return (item.display_text, item.category_hint or "")


class CatalogNormalizer:
    """
    Memoizing, restartable wrapper around AttributeExtractor.

    Thread-safe: the memo is guarded by a lock and extraction itself only
    reads static tables.
    """

    def __init__(self, extractor: Optional[AttributeExtractor] = None):
        self.extractor = extractor or get_attribute_extractor()
        self._memo: Dict[ItemKey, Tuple[Tuple[str, ...], ExtractedAttributes]] = {}
        self._lock = threading.Lock()

    def attributes_for(self, item: CatalogItem) -> ExtractedAttributes:
        """Return the item's attributes, extracting only when its text changed."""
        attributes, _ = self._attributes_for(item)
        return attributes

    def normalize(
        self,
        items: Iterable[CatalogItem],
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> NormalizationReport:
        """
        Normalize a batch of items.

        Args:
            items: Items to normalize
            should_stop: Polled before each item; returning True ends the pass early

        Returns:
            NormalizationReport; ``completed`` is False when the pass was interrupted
        """
        start = time.perf_counter()
        items = list(items)
        extracted = reused = 0
        completed = True

        for item in items:
            if should_stop is not None and should_stop():
                completed = False
                break
            _, fresh = self._attributes_for(item)
            if fresh:
                extracted += 1
            else:
                reused += 1

        report = NormalizationReport(
            total=len(items),
            extracted=extracted,
            reused=reused,
            completed=completed,
            duration_seconds=time.perf_counter() - start,
        )
        if completed:
            logger.info(
                f"Normalized {report.total} items ({extracted} extracted, {reused} reused) "
                f"in {report.duration_seconds:.3f}s"
            )
        else:
            logger.info(f"Normalization interrupted after {report.processed}/{report.total} items")
        return report

    def attributes_map(
        self, items: Optional[Iterable[CatalogItem]] = None
    ) -> Mapping[ItemKey, ExtractedAttributes]:
        """
        Snapshot of memoized attributes by item key.

        When ``items`` is given only those items are included.
        """
        with self._lock:
            if items is None:
                return {item_key: entry[1] for item_key, entry in self._memo.items()}
            return {
                item.key: self._memo[item.key][1] for item in items if item.key in self._memo
            }

    def retain(self, item_keys: Iterable[ItemKey]) -> int:
        """Drop memoized attributes of items no longer in the catalog. Returns count removed."""
        keep = set(item_keys)
        with self._lock:
            stale = [item_key for item_key in self._memo if item_key not in keep]
            for item_key in stale:
                del self._memo[item_key]
        if stale:
            logger.debug(f"Dropped {len(stale)} stale normalized items")
        return len(stale)

    def clear(self):
        with self._lock:
            self._memo.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._memo)

    def _attributes_for(self, item: CatalogItem) -> Tuple[ExtractedAttributes, bool]:
        source = _source_key(item)
        with self._lock:
            cached = self._memo.get(item.key)
        if cached is not None and cached[0] == source:
            return cached[1], False

        attributes = self._extract(item)
        with self._lock:
            self._memo[item.key] = (source, attributes)
        return attributes, True

    def _extract(self, item: CatalogItem) -> ExtractedAttributes:
        attributes = self.extractor.extract(item.display_text, item.category_hint)
        if not isinstance(item, Product):
            return attributes

        changes = {}
        if attributes.brand is None and item.brand:
            brand = item.brand
            changes["brand"] = brand
            changes["model"] = self.extractor.extract_model(item.display_text, brand)
        if item.variant:
            changes["variant"] = item.variant
        if not changes:
            return attributes

        merged = dataclasses.replace(attributes, **changes)
        return dataclasses.replace(
            merged, canonical_id=self.extractor.generate_canonical_id(merged)
        )
