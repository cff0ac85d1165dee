"""
Catalog search with progressive constraint relaxation.
"""
from lowprice.search.progressive_relaxation import (
    AppliedFilters,
    RelaxationController,
    SearchFilters,
    SearchOutcome,
    RELAXATION_ORDER,
)

__all__ = [
    "AppliedFilters",
    "RelaxationController",
    "SearchFilters",
    "SearchOutcome",
    "RELAXATION_ORDER",
]
