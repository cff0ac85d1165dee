"""
Deterministic filter chain over normalized items.

Checks run in a fixed order, and the order matters:
1. Price bounds (never skipped, never relaxed)
2. Exclusion-category keywords
3. Noise keywords (the only check eligible for automatic relaxation)

Survivors are deduplicated by link (first occurrence wins) and stable-sorted
by ascending price, so same-priced items keep their arrival order.
"""
from typing import Iterable, List, Optional, Sequence

from lowprice.data.items import Item
from lowprice.filtering.keywords import DEFAULT_VOCABULARY, KeywordVocabulary
from lowprice.utils.logger import get_logger
from lowprice.utils.text import contains_any_keyword

logger = get_logger("filtering.filter_engine")


def matches_price(item: Item, min_price: Optional[int], max_price: Optional[int]) -> bool:
    """Price-bound check. Items without a price (lprice <= 0) never match."""
    if item.lprice <= 0:
        return False
    if min_price is not None and item.lprice < min_price:
        return False
    if max_price is not None and item.lprice > max_price:
        return False
    return True


def deduplicate_by_link(items: Iterable[Item]) -> List[Item]:
    """Keep the first item seen for each link (preserves upstream ranking)."""
    seen = set()
    unique = []
    for item in items:
        if item.link in seen:
            continue
        seen.add(item.link)
        unique.append(item)
    return unique


def sort_by_price_asc(items: Iterable[Item]) -> List[Item]:
    # sorted() is stable: ties keep arrival order
    return sorted(items, key=lambda item: item.lprice)


class FilterEngine:
    """Applies price, exclusion-keyword and noise-keyword filters."""

    def __init__(self, vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY):
        self.vocabulary = vocabulary

    def has_exclude_keyword(self, title_text: str, exclude: Optional[Sequence[str]]) -> bool:
        if not exclude:
            return False
        return contains_any_keyword(title_text, self.vocabulary.keywords_for(exclude))

    def has_noise_keyword(self, title_text: str) -> bool:
        return contains_any_keyword(title_text, self.vocabulary.noise_keywords)

    def matches(
        self,
        item: Item,
        min_price: Optional[int],
        max_price: Optional[int],
        exclude: Optional[Sequence[str]],
        filter_noise: bool,
    ) -> bool:
        if not matches_price(item, min_price, max_price):
            return False
        if exclude and self.has_exclude_keyword(item.title_text, exclude):
            return False
        if filter_noise and self.has_noise_keyword(item.title_text):
            return False
        return True

    def apply(
        self,
        items: Sequence[Item],
        min_price: Optional[int],
        max_price: Optional[int],
        exclude: Optional[Sequence[str]],
        filter_noise: bool,
    ) -> List[Item]:
        """
        Filter, deduplicate and sort.

        Args:
            items: Normalized items in arrival order
            min_price: Inclusive lower bound, None = unconstrained
            max_price: Inclusive upper bound, None = unconstrained
            exclude: Exclusion categories, None/empty = no keyword exclusion
            filter_noise: Drop items whose title contains a noise keyword

        Returns:
            Unique items sorted by ascending lprice
        """
        filtered = [
            item for item in items
            if self.matches(item, min_price, max_price, exclude, filter_noise)
        ]
        unique = deduplicate_by_link(filtered)
        result = sort_by_price_asc(unique)
        logger.debug(
            f"Filtered {len(items)} -> {len(filtered)} -> {len(result)} unique "
            f"(min={min_price}, max={max_price}, exclude={exclude}, noise={filter_noise})"
        )
        return result

    def count_excluded_by_keywords(
        self,
        items: Sequence[Item],
        min_price: Optional[int],
        max_price: Optional[int],
        exclude: Optional[Sequence[str]],
    ) -> int:
        """Number of items that pass the price check but hit an exclusion keyword."""
        if not exclude:
            return 0
        return sum(
            1 for item in items
            if matches_price(item, min_price, max_price)
            and self.has_exclude_keyword(item.title_text, exclude)
        )
