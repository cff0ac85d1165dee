"""
Equal-width price histogram.

Used by callers to pick a price range for refinement (e.g. to cut off a
cluster of suspiciously cheap listings on the left).
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
import numpy as np

from lowprice.data.items import Item

DEFAULT_BUCKET_COUNT = 20


@dataclass(frozen=True)
class HistogramBucket:
    min_price: int
    max_price: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"min_price": self.min_price, "max_price": self.max_price, "count": self.count}


def build_price_histogram(
    items: Sequence[Item],
    bucket_count: int = DEFAULT_BUCKET_COUNT,
) -> List[HistogramBucket]:
    """
    Split [min lprice, max lprice] into `bucket_count` equal-width buckets.

    The maximum price always lands in the last bucket. When every item has the
    same price a single bucket holds them all. Bounds are floored to integers.
    """
    if not items:
        return []

    prices = np.array([item.lprice for item in items], dtype=np.float64)
    low = float(prices.min())
    high = float(prices.max())

    if low == high:
        return [HistogramBucket(min_price=int(low), max_price=int(high), count=len(items))]

    width = (high - low) / bucket_count
    indices = np.minimum(((prices - low) / width).astype(np.int64), bucket_count - 1)
    counts = np.bincount(indices, minlength=bucket_count)

    buckets = []
    for i in range(bucket_count):
        bucket_low = low + i * width
        bucket_high = high if i == bucket_count - 1 else low + (i + 1) * width
        buckets.append(HistogramBucket(
            min_price=int(np.floor(bucket_low)),
            max_price=int(np.floor(bucket_high)),
            count=int(counts[i]),
        ))
    return buckets
