"""
Main lowest-price controller.

Orchestrates one search request: normalizes the requested filters, runs the
relaxed catalog search, and assembles the ranked output.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from lowprice.aggregation.histogram import HistogramBucket, build_price_histogram
from lowprice.aggregation.price_groups import (
    PriceBandSummary,
    PriceGroup,
    TargetPriceComparison,
    compare_target_price,
    extract_top_results,
)
from lowprice.core.config import LowPriceConfig, get_config
from lowprice.data.catalog_client import CatalogClient
from lowprice.data.items import Item
from lowprice.filtering.filter_engine import FilterEngine
from lowprice.filtering.keywords import EXCLUDE_OPTIONS
from lowprice.refinement.refiner import RefinedResult, RefineOptions, refine
from lowprice.search.progressive_relaxation import (
    AppliedFilters,
    PageFetcher,
    RelaxationController,
    SearchFilters,
)
from lowprice.utils.errors import ValidationError
from lowprice.utils.logger import get_logger

logger = get_logger("core.controller")

SORT_OPTIONS = ("sim", "date", "asc", "dsc")


def validate_query(query: Optional[str], max_length: int = 100) -> str:
    """Return the trimmed query or raise ValidationError."""
    if query is None or not query.strip():
        raise ValidationError("A search query is required")
    query = query.strip()
    if len(query) > max_length:
        raise ValidationError(f"Search query must be at most {max_length} characters")
    return query


def normalize_filters(
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    exclude: Optional[Iterable[str]] = None,
    pages: Optional[int] = None,
    filter_noise: Optional[bool] = None,
    sort: Optional[str] = None,
    config: Optional[LowPriceConfig] = None,
    allowed_exclude: Iterable[str] = EXCLUDE_OPTIONS,
) -> SearchFilters:
    """
    Build a SearchFilters from loosely validated request values.

    - Negative price bounds are ignored (None); inverted bounds are swapped
    - exclude=None means the configured default set; unknown values are dropped
    - pages defaults to the configured default and is clamped to [1, max_pages]
    - Unknown sort hints fall back to the configured default
    """
    config = config or get_config()

    if min_price is not None and min_price < 0:
        min_price = None
    if max_price is not None and max_price < 0:
        max_price = None
    if min_price is not None and max_price is not None and min_price > max_price:
        min_price, max_price = max_price, min_price

    allowed = set(allowed_exclude)
    requested = config.default_exclude if exclude is None else exclude
    normalized_exclude: List[str] = []
    for value in requested:
        if value in allowed and value not in normalized_exclude:
            normalized_exclude.append(value)

    page_count = config.default_pages if pages is None else pages
    page_count = max(1, min(page_count, config.max_pages))

    return SearchFilters(
        min_price=min_price,
        max_price=max_price,
        exclude=tuple(normalized_exclude),
        filter_noise=bool(filter_noise),
        pages=page_count,
        sort=sort if sort in SORT_OPTIONS else config.default_sort,
    )


def build_cache_key(query: str, filters: SearchFilters) -> str:
    """Stable `key=value&...` string for a normalized request (keys sorted)."""
    params = {
        "query": query,
        "minPrice": str(filters.min_price),
        "maxPrice": str(filters.max_price),
        "sort": filters.sort,
        "exclude": ":".join(filters.exclude),
        "pages": str(filters.pages),
        "filterNoise": str(filters.filter_noise).lower(),
    }
    return "&".join(f"{key}={params[key]}" for key in sorted(params))


@dataclass
class LowestPriceResponse:
    """Response from the lowest-price controller."""
    query: str
    filters: SearchFilters
    top1: Optional[Item]
    price_groups: List[PriceGroup]
    price_band: Optional[PriceBandSummary]
    total_candidates: int
    total_reported: int                  # Upstream figure from the last page, approximate
    filter_relaxed: bool
    relaxation_log: List[str]
    applied_filters: AppliedFilters
    excluded_by_keywords: int
    all_items: List[Item] = field(default_factory=list)
    histogram: List[HistogramBucket] = field(default_factory=list)
    target_comparison: Optional[TargetPriceComparison] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "filters": self.filters.to_dict(),
            "top1": self.top1.to_dict() if self.top1 else None,
            "price_groups": [group.to_dict() for group in self.price_groups],
            "price_band": self.price_band.to_dict() if self.price_band else None,
            "total_candidates": self.total_candidates,
            "total_reported": self.total_reported,
            "filter_relaxed": self.filter_relaxed,
            "relaxation_log": list(self.relaxation_log),
            "applied_filters": self.applied_filters.to_dict(),
            "excluded_by_keywords": self.excluded_by_keywords,
            "all_items": [item.to_dict() for item in self.all_items],
            "histogram": [bucket.to_dict() for bucket in self.histogram],
            "target_comparison": self.target_comparison.to_dict() if self.target_comparison else None,
        }


class LowestPriceController:
    """
    Entry point for lowest-price searches.

    Holds no per-request state; each `search` works on its own fetched items.
    """

    def __init__(
        self,
        config: Optional[LowPriceConfig] = None,
        client: Optional[PageFetcher] = None,
        engine: Optional[FilterEngine] = None,
    ):
        """
        Initialize the controller.

        Args:
            config: Configuration object. Uses default config if not provided.
            client: Catalog page fetcher. A CatalogClient is created if not provided.
            engine: Filter engine. Uses the default keyword vocabulary if not provided.
        """
        self.config = config or get_config()
        self.client = client if client is not None else CatalogClient(self.config)
        self.engine = engine or FilterEngine()
        self.relaxation = RelaxationController(self.client, self.engine)

        logger.info(
            f"Lowest-price controller initialized: pages={self.config.default_pages}/{self.config.max_pages}, "
            f"top_n={self.config.top_n}, timeout={self.config.timeout_ms}ms"
        )

    def search(
        self,
        query: str,
        filters: SearchFilters,
        target_price: Optional[int] = None,
    ) -> LowestPriceResponse:
        """
        Run a relaxed catalog search and aggregate the result.

        Raises:
            ValidationError: blank or overlong query
            UpstreamError / UpstreamTimeout: catalog fetch failed
        """
        query = validate_query(query, self.config.max_query_length)

        outcome = self.relaxation.search(query, filters, sort=self.config.upstream_sort)
        top = extract_top_results(
            outcome.items,
            top_n=self.config.top_n,
            max_items_per_group=self.config.max_items_per_group,
        )

        return LowestPriceResponse(
            query=query,
            filters=filters,
            top1=top.top1,
            price_groups=top.price_groups,
            price_band=top.price_band,
            total_candidates=len(outcome.items),
            total_reported=outcome.total_reported,
            filter_relaxed=outcome.relaxed,
            relaxation_log=list(outcome.relaxation_log),
            applied_filters=outcome.applied_filters,
            excluded_by_keywords=outcome.excluded_by_keywords,
            all_items=list(outcome.items),
            histogram=build_price_histogram(outcome.items, bucket_count=self.config.histogram_buckets),
            target_comparison=compare_target_price(target_price, top.top1),
        )

    def refine(self, items: List[Item], options: Optional[RefineOptions] = None) -> RefinedResult:
        """Refine an already-fetched item list without contacting the catalog."""
        return refine(items, options, config=self.config)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()


def create_controller(config: Optional[LowPriceConfig] = None) -> LowestPriceController:
    """Create a controller with its own catalog client."""
    return LowestPriceController(config or get_config())
