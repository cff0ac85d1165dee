"""
Title and price filtering for catalog items.
"""
from lowprice.filtering.filter_engine import (
    FilterEngine,
    deduplicate_by_link,
    matches_price,
    sort_by_price_asc,
)
from lowprice.filtering.keywords import DEFAULT_VOCABULARY, EXCLUDE_OPTIONS, KeywordVocabulary

__all__ = [
    "FilterEngine",
    "deduplicate_by_link",
    "matches_price",
    "sort_by_price_asc",
    "DEFAULT_VOCABULARY",
    "EXCLUDE_OPTIONS",
    "KeywordVocabulary",
]
