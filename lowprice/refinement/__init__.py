"""
Client-side refinement over an already-fetched result set.
"""
from lowprice.refinement.refiner import RefinedResult, RefineOptions, iqr_bounds, mall_facets, refine, trim_outliers

__all__ = [
    "RefinedResult",
    "RefineOptions",
    "iqr_bounds",
    "mall_facets",
    "refine",
    "trim_outliers",
]
