"""
Client-side refinement of an already-fetched result set.

Pure and repeatable: no catalog access, no shared state. Every call re-derives
the cheapest item, price bands and band summary from the refined subset, so
rankings always reflect the current refinement rather than the initial search.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple
import numpy as np

from lowprice.aggregation.histogram import HistogramBucket, build_price_histogram
from lowprice.aggregation.price_groups import (
    PriceBandSummary,
    PriceGroup,
    extract_top_results,
)
from lowprice.core.config import LowPriceConfig, get_config
from lowprice.data.items import Item
from lowprice.filtering.filter_engine import sort_by_price_asc
from lowprice.utils.logger import get_logger

logger = get_logger("refinement.refiner")

SORT_PRICE_ASC = "asc"
SORT_PRICE_DESC = "dsc"


@dataclass(frozen=True)
class RefineOptions:
    trim_outliers: bool = False
    malls: FrozenSet[str] = field(default_factory=frozenset)     # Empty = all malls
    price_range: Optional[Tuple[int, int]] = None                # Inclusive [low, high]
    sort: str = SORT_PRICE_ASC                                   # 'asc', 'dsc', anything else keeps order


@dataclass(frozen=True)
class RefinedResult:
    items: List[Item]
    top1: Optional[Item]
    price_groups: List[PriceGroup]
    price_band: Optional[PriceBandSummary]
    histogram: List[HistogramBucket]
    outlier_bounds: Optional[Tuple[float, float]] = None
    removed_outliers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "top1": self.top1.to_dict() if self.top1 else None,
            "price_groups": [group.to_dict() for group in self.price_groups],
            "price_band": self.price_band.to_dict() if self.price_band else None,
            "histogram": [bucket.to_dict() for bucket in self.histogram],
            "outlier_bounds": list(self.outlier_bounds) if self.outlier_bounds else None,
            "removed_outliers": self.removed_outliers,
            "total_candidates": len(self.items),
        }


def iqr_bounds(
    prices: Sequence[int],
    multiplier: float = 2.0,
    min_sample_size: int = 5,
) -> Optional[Tuple[float, float]]:
    """
    Outlier bounds [max(0, Q1 - k*IQR), Q3 + k*IQR].

    Quartiles are taken by index from the sorted prices (no interpolation).
    Returns None when there are fewer than `min_sample_size` prices.
    """
    if len(prices) < min_sample_size:
        return None

    ordered = np.sort(np.asarray(prices, dtype=np.float64))
    n = len(ordered)
    q1 = float(ordered[int(n * 0.25)])
    q3 = float(ordered[int(n * 0.75)])
    iqr = q3 - q1
    return max(0.0, q1 - multiplier * iqr), q3 + multiplier * iqr


def trim_outliers(
    items: Sequence[Item],
    multiplier: float = 2.0,
    min_sample_size: int = 5,
) -> List[Item]:
    bounds = iqr_bounds([item.lprice for item in items], multiplier, min_sample_size)
    return _within(items, bounds)


def _within(items: Sequence[Item], bounds: Optional[Tuple[float, float]]) -> List[Item]:
    if bounds is None:
        return list(items)
    low, high = bounds
    return [item for item in items if low <= item.lprice <= high]


def filter_by_malls(items: Sequence[Item], malls: FrozenSet[str]) -> List[Item]:
    if not malls:
        return list(items)
    return [item for item in items if item.mall_name in malls]


def filter_by_price_range(items: Sequence[Item], price_range: Optional[Tuple[int, int]]) -> List[Item]:
    if price_range is None:
        return list(items)
    low, high = sorted(price_range)
    return [item for item in items if low <= item.lprice <= high]


def sort_items(items: Sequence[Item], mode: str) -> List[Item]:
    if mode == SORT_PRICE_ASC:
        return sort_by_price_asc(items)
    if mode == SORT_PRICE_DESC:
        return sorted(items, key=lambda item: item.lprice, reverse=True)
    return list(items)


def mall_facets(items: Sequence[Item]) -> List[Tuple[str, int]]:
    """Mall names with item counts, most common first (ties by name)."""
    counts: Dict[str, int] = {}
    for item in items:
        counts[item.mall_name] = counts.get(item.mall_name, 0) + 1
    return sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))


def refine(
    items: Sequence[Item],
    options: Optional[RefineOptions] = None,
    config: Optional[LowPriceConfig] = None,
) -> RefinedResult:
    """
    Apply outlier trim, mall facet, price range and sort, then re-aggregate.

    Outlier bounds are computed over the full input so that narrowing the mall
    facet does not shift them.
    """
    options = options or RefineOptions()
    config = config or get_config()

    bounds = None
    refined = list(items)
    if options.trim_outliers:
        bounds = iqr_bounds(
            [item.lprice for item in refined],
            multiplier=config.iqr_multiplier,
            min_sample_size=config.min_sample_size,
        )
        refined = _within(refined, bounds)
    removed_outliers = len(items) - len(refined)

    refined = filter_by_malls(refined, options.malls)
    refined = filter_by_price_range(refined, options.price_range)
    ordered = sort_items(refined, options.sort)

    # Aggregation always needs ascending price, whatever the display order
    top = extract_top_results(
        sort_by_price_asc(refined),
        top_n=config.top_n,
        max_items_per_group=config.max_items_per_group,
    )
    histogram = build_price_histogram(refined, bucket_count=config.histogram_buckets)

    logger.info(
        f"Refined {len(items)} -> {len(ordered)} items "
        f"(outliers removed={removed_outliers}, malls={sorted(options.malls)}, "
        f"range={options.price_range}, sort={options.sort})"
    )

    return RefinedResult(
        items=ordered,
        top1=top.top1,
        price_groups=top.price_groups,
        price_band=top.price_band,
        histogram=histogram,
        outlier_bounds=bounds,
        removed_outliers=removed_outliers,
    )
