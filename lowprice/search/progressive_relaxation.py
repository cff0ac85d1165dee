"""
Progressive Constraint Relaxation.

Runs the fetch -> normalize -> filter pipeline and, only when it yields zero
items, loosens non-price constraints one round at a time until something is
found or every round has been tried.

Rounds, in firing order:

    step             precondition           action                               re-fetch
    dropFilterNoise  filter_noise is on     filter_noise = False                 no
    dropExclude      exclude is non-empty   exclude = None                       yes
    reducePages      pages > 1              pages = 1, filter_noise = False      yes

Price bounds are passed through unchanged in every round. An empty result
after the last round is a valid outcome, not an error.
"""
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from lowprice.data.items import Item, RawCatalogItem, normalize_items
from lowprice.filtering.filter_engine import FilterEngine
from lowprice.utils.errors import ValidationError
from lowprice.utils.logger import get_logger

logger = get_logger("search.progressive_relaxation")

DROP_FILTER_NOISE = "dropFilterNoise"
DROP_EXCLUDE = "dropExclude"
REDUCE_PAGES = "reducePages"


class PageFetcher(Protocol):
    def fetch_pages(
        self,
        query: str,
        pages: int,
        sort: str,
        exclude: Sequence[str] = (),
    ) -> Tuple[List[RawCatalogItem], int]:
        ...


@dataclass(frozen=True)
class SearchFilters:
    """
    Requested constraint set, already normalized (bounds swapped if inverted,
    pages clamped, exclusion values restricted to the vocabulary).
    """
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    exclude: Tuple[str, ...] = ()
    filter_noise: bool = False
    pages: int = 3
    sort: str = "sim"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["exclude"] = list(self.exclude)
        return data


@dataclass(frozen=True)
class AppliedFilters:
    """Constraint values actually enforced in the terminal round."""
    min_price: Optional[int]
    max_price: Optional[int]
    filter_noise: bool
    exclude: Optional[Tuple[str, ...]]
    exclude_keywords_enabled: bool
    pages: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["exclude"] = list(self.exclude) if self.exclude is not None else None
        return data


@dataclass(frozen=True)
class RoundState:
    """Non-price constraints for the current round plus the items fetched under them."""
    exclude: Optional[Tuple[str, ...]]
    filter_noise: bool
    pages: int
    fetched: Tuple[Item, ...] = ()
    total_reported: int = 0


@dataclass(frozen=True)
class RelaxationRound:
    step: str
    precondition: Callable[[RoundState], bool]
    relax: Callable[[RoundState], RoundState]
    refetch: bool


def _drop_filter_noise(state: RoundState) -> RoundState:
    return replace(state, filter_noise=False)


def _drop_exclude(state: RoundState) -> RoundState:
    return replace(state, exclude=None)


def _reduce_pages(state: RoundState) -> RoundState:
    return replace(state, pages=1, filter_noise=False)


RELAXATION_ROUNDS: Tuple[RelaxationRound, ...] = (
    RelaxationRound(DROP_FILTER_NOISE, lambda s: s.filter_noise, _drop_filter_noise, refetch=False),
    RelaxationRound(DROP_EXCLUDE, lambda s: bool(s.exclude), _drop_exclude, refetch=True),
    RelaxationRound(REDUCE_PAGES, lambda s: s.pages > 1, _reduce_pages, refetch=True),
)

RELAXATION_ORDER: Tuple[str, ...] = tuple(r.step for r in RELAXATION_ROUNDS)


@dataclass
class SearchOutcome:
    """Terminal result of a relaxed search."""
    items: List[Item]
    total_reported: int
    applied_filters: AppliedFilters
    relaxation_log: List[str] = field(default_factory=list)
    excluded_by_keywords: int = 0

    @property
    def relaxed(self) -> bool:
        return len(self.relaxation_log) > 0


class RelaxationController:
    """Drives the catalog client and filter engine through the relaxation rounds."""

    def __init__(
        self,
        client: PageFetcher,
        engine: Optional[FilterEngine] = None,
        rounds: Sequence[RelaxationRound] = RELAXATION_ROUNDS,
    ):
        self.client = client
        self.engine = engine or FilterEngine()
        self.rounds = tuple(rounds)

    def _fetch(self, query: str, state: RoundState, sort: str) -> RoundState:
        raw_items, total = self.client.fetch_pages(query, state.pages, sort, state.exclude or ())
        return replace(state, fetched=tuple(normalize_items(raw_items)), total_reported=total)

    def _filter(self, state: RoundState, filters: SearchFilters) -> List[Item]:
        return self.engine.apply(
            state.fetched,
            filters.min_price,
            filters.max_price,
            state.exclude,
            state.filter_noise,
        )

    def search(
        self,
        query: str,
        filters: SearchFilters,
        sort: Optional[str] = None,
    ) -> SearchOutcome:
        """
        Search with progressive relaxation.

        Args:
            query: Free-text query (must be non-blank)
            filters: Normalized constraint set
            sort: Upstream sort hint; defaults to filters.sort

        Returns:
            SearchOutcome with the terminal items, applied filters and relaxation log

        Raises:
            ValidationError: blank query
            UpstreamError / UpstreamTimeout: any page fetch failed (not retried)
        """
        if not query or not query.strip():
            raise ValidationError("A search query is required")

        sort = sort or filters.sort
        state = RoundState(
            exclude=tuple(filters.exclude),
            filter_noise=filters.filter_noise,
            pages=filters.pages,
        )

        logger.info("=" * 60)
        logger.info("PROGRESSIVE CONSTRAINT RELAXATION")
        logger.info("=" * 60)
        logger.info(
            f"Round 0: query='{query}', price=[{filters.min_price}, {filters.max_price}], "
            f"exclude={list(state.exclude or ())}, filter_noise={state.filter_noise}, pages={state.pages}"
        )

        state = self._fetch(query, state, sort)
        items = self._filter(state, filters)
        logger.info(f"  -> {len(items)} results from {len(state.fetched)} fetched")

        relaxation_log: List[str] = []
        for round_number, relaxation in enumerate(self.rounds, start=1):
            if items:
                break
            if not relaxation.precondition(state):
                continue

            state = relaxation.relax(state)
            relaxation_log.append(relaxation.step)
            logger.info(
                f"Round {round_number}: {relaxation.step} "
                f"(exclude={list(state.exclude or ())}, filter_noise={state.filter_noise}, "
                f"pages={state.pages}, refetch={relaxation.refetch})"
            )

            if relaxation.refetch:
                state = self._fetch(query, state, sort)
            items = self._filter(state, filters)
            logger.info(f"  -> {len(items)} results from {len(state.fetched)} fetched")

        applied_filters = AppliedFilters(
            min_price=filters.min_price,
            max_price=filters.max_price,
            filter_noise=state.filter_noise,
            exclude=state.exclude,
            exclude_keywords_enabled=bool(state.exclude),
            pages=state.pages,
        )
        excluded_by_keywords = self.engine.count_excluded_by_keywords(
            state.fetched,
            filters.min_price,
            filters.max_price,
            filters.exclude,
        )

        logger.info("=" * 60)
        logger.info(f"Final result: {len(items)} items")
        if relaxation_log:
            logger.info(f"Relaxation steps: {relaxation_log}")
        else:
            logger.info("All constraints met")
        logger.info("=" * 60)

        return SearchOutcome(
            items=items,
            total_reported=state.total_reported,
            applied_filters=applied_filters,
            relaxation_log=relaxation_log,
            excluded_by_keywords=excluded_by_keywords,
        )


__all__ = [
    "RelaxationController",
    "SearchFilters",
    "AppliedFilters",
    "SearchOutcome",
    "RoundState",
    "RelaxationRound",
    "RELAXATION_ROUNDS",
    "RELAXATION_ORDER",
    "DROP_FILTER_NOISE",
    "DROP_EXCLUDE",
    "REDUCE_PAGES",
]
