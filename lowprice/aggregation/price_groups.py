"""
Price-band aggregation over a filtered, price-ascending item list.

Items are bucketed by exact price; the cheapest `max_groups` buckets (each
capped at `max_items_per_group` items) form the ranked price bands, and the
band summary statistics are computed over those bands only, not over the full
result set.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from lowprice.data.items import Item
from lowprice.utils.logger import get_logger

logger = get_logger("aggregation.price_groups")

DEFAULT_TOP_N = 10
DEFAULT_MAX_ITEMS_PER_GROUP = 20


@dataclass(frozen=True)
class PriceGroup:
    """Items sharing one exact price. `count` is the capped item count."""
    price: int
    count: int
    items: Tuple[Item, ...]
    representative: Item

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "count": self.count,
            "items": [item.to_dict() for item in self.items],
            "representative": self.representative.to_dict(),
        }


@dataclass(frozen=True)
class PriceBandSummary:
    min_price: int
    max_price: int
    avg_price: int
    median_price: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_price": self.min_price,
            "max_price": self.max_price,
            "avg_price": self.avg_price,
            "median_price": self.median_price,
        }


@dataclass(frozen=True)
class TopResults:
    top1: Optional[Item]
    price_groups: List[PriceGroup]
    price_band: Optional[PriceBandSummary]


@dataclass(frozen=True)
class TargetPriceComparison:
    target_price: int
    lowest_price: int
    difference: int
    difference_percent: float
    status: str  # 'higher', 'lower' or 'equal' (target relative to lowest)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_price": self.target_price,
            "lowest_price": self.lowest_price,
            "difference": self.difference,
            "difference_percent": self.difference_percent,
            "status": self.status,
        }


def div_round_half_up(numerator: int, denominator: int) -> int:
    """numerator / denominator rounded half up, exact for arbitrarily large non-negative ints."""
    return (2 * numerator + denominator) // (2 * denominator)


def group_by_price(
    items: Sequence[Item],
    max_groups: int = DEFAULT_TOP_N,
    max_items_per_group: int = DEFAULT_MAX_ITEMS_PER_GROUP,
) -> List[PriceGroup]:
    """
    Bucket items by exact price.

    Args:
        items: Items in ascending-price order (arrival order within a price)
        max_groups: Number of cheapest buckets to return
        max_items_per_group: Items kept per bucket (first arrivals win)

    Returns:
        Price groups sorted by ascending price
    """
    if not items:
        return []

    by_price: Dict[int, List[Item]] = defaultdict(list)
    for item in items:
        bucket = by_price[item.lprice]
        if len(bucket) < max_items_per_group:
            bucket.append(item)

    # Explicit price ordering; does not rely on dict insertion order
    ranked = sorted(by_price.items(), key=lambda entry: entry[0])[:max_groups]

    return [
        PriceGroup(
            price=price,
            count=len(group_items),
            items=tuple(group_items),
            representative=group_items[0],
        )
        for price, group_items in ranked
    ]


def calculate_price_band(groups: Sequence[PriceGroup]) -> Optional[PriceBandSummary]:
    """
    Summarize price bands with item-count weighting.

    The median expands each band into `count` copies of its price, so it is
    the median of the banded items rather than of the distinct prices.
    Arithmetic stays in Python ints, so large prices are summed exactly.
    """
    if not groups:
        return None

    total_items = sum(g.count for g in groups)
    weighted_sum = sum(g.price * g.count for g in groups)
    avg_price = div_round_half_up(weighted_sum, total_items)

    expanded = sorted(price for g in groups for price in [g.price] * g.count)
    mid = len(expanded) // 2
    if len(expanded) % 2 == 0:
        median_price = div_round_half_up(expanded[mid - 1] + expanded[mid], 2)
    else:
        median_price = expanded[mid]

    return PriceBandSummary(
        min_price=min(g.price for g in groups),
        max_price=max(g.price for g in groups),
        avg_price=avg_price,
        median_price=median_price,
    )


def extract_top_results(
    items: Sequence[Item],
    top_n: int = DEFAULT_TOP_N,
    max_items_per_group: int = DEFAULT_MAX_ITEMS_PER_GROUP,
) -> TopResults:
    """Cheapest item, ranked price bands and band summary for a price-ascending list."""
    top1 = items[0] if items else None
    groups = group_by_price(items, max_groups=top_n, max_items_per_group=max_items_per_group)
    band = calculate_price_band(groups)

    if band is not None:
        logger.info(
            f"Aggregated {len(items)} items into {len(groups)} price bands "
            f"(min={band.min_price}, max={band.max_price}, avg={band.avg_price}, median={band.median_price})"
        )
    return TopResults(top1=top1, price_groups=groups, price_band=band)


def compare_target_price(target_price: Optional[int], lowest: Optional[Item]) -> Optional[TargetPriceComparison]:
    """
    Compare a caller's target price with the cheapest item.

    Returns None when no positive target was given or nothing was found.
    """
    if not target_price or target_price <= 0 or lowest is None:
        return None

    lowest_price = lowest.lprice
    difference = target_price - lowest_price
    difference_percent = (difference / lowest_price) * 100 if lowest_price > 0 else 0.0

    if difference > 0:
        status = "higher"
    elif difference < 0:
        status = "lower"
    else:
        status = "equal"

    return TargetPriceComparison(
        target_price=target_price,
        lowest_price=lowest_price,
        difference=difference,
        difference_percent=difference_percent,
        status=status,
    )
