"""
Aggregation of filtered results: price bands, band summary, histogram.
"""
from lowprice.aggregation.histogram import HistogramBucket, build_price_histogram
from lowprice.aggregation.price_groups import (
    PriceBandSummary,
    PriceGroup,
    TargetPriceComparison,
    TopResults,
    calculate_price_band,
    compare_target_price,
    extract_top_results,
    group_by_price,
)

__all__ = [
    "HistogramBucket",
    "build_price_histogram",
    "PriceBandSummary",
    "PriceGroup",
    "TargetPriceComparison",
    "TopResults",
    "calculate_price_band",
    "compare_target_price",
    "extract_top_results",
    "group_by_price",
]
