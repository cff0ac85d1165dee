"""
Tests for request normalization and the lowest-price controller.
"""
import pytest

from lowprice.core.config import LowPriceConfig
from lowprice.core.controller import (
    LowestPriceController,
    build_cache_key,
    normalize_filters,
    validate_query,
)
from lowprice.refinement.refiner import RefineOptions
from lowprice.search.progressive_relaxation import SearchFilters
from lowprice.utils.errors import ValidationError


# ============================================================================
# Request normalization
# ============================================================================

class TestValidateQuery:

    def test_trims(self):
        assert validate_query("  바나나 ") == "바나나"

    def test_blank(self):
        for query in (None, "", "   "):
            with pytest.raises(ValidationError):
                validate_query(query)

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_query("a" * 101, max_length=100)
        assert validate_query("a" * 100, max_length=100) == "a" * 100


class TestNormalizeFilters:

    def test_defaults(self):
        filters = normalize_filters()

        assert filters.min_price is None
        assert filters.max_price is None
        assert filters.exclude == ("used", "rental", "cbshop")
        assert filters.filter_noise is False
        assert filters.pages == 3
        assert filters.sort == "sim"

    def test_inverted_bounds_swapped(self):
        filters = normalize_filters(min_price=50000, max_price=1000)
        assert (filters.min_price, filters.max_price) == (1000, 50000)

    def test_negative_bounds_ignored(self):
        filters = normalize_filters(min_price=-5, max_price=-1)
        assert filters.min_price is None
        assert filters.max_price is None

    def test_pages_clamped(self):
        assert normalize_filters(pages=0).pages == 1
        assert normalize_filters(pages=50).pages == 10
        assert normalize_filters(pages=5).pages == 5

    def test_exclude_restricted_and_deduplicated(self):
        assert normalize_filters(exclude=["used", "bogus", "used"]).exclude == ("used",)
        assert normalize_filters(exclude=[]).exclude == ()

    def test_unknown_sort_falls_back(self):
        assert normalize_filters(sort="cheapest").sort == "sim"
        assert normalize_filters(sort="dsc").sort == "dsc"

    def test_uses_given_config(self):
        config = LowPriceConfig(default_pages=2, max_pages=4, default_exclude=["rental"])
        filters = normalize_filters(pages=None, config=config)
        assert filters.pages == 2
        assert filters.exclude == ("rental",)
        assert normalize_filters(pages=9, config=config).pages == 4


class TestCacheKey:

    def test_keys_sorted_and_stable(self):
        filters = SearchFilters(min_price=1000, max_price=None, exclude=("used", "rental"), pages=2)
        key = build_cache_key("바나나", filters)

        assert key == (
            "exclude=used:rental&filterNoise=false&maxPrice=None&minPrice=1000"
            "&pages=2&query=바나나&sort=sim"
        )
        assert build_cache_key("바나나", filters) == key


# ============================================================================
# Controller
# ============================================================================

class TestLowestPriceController:

    def test_search_response(self, fake_client, make_raw, default_config):
        raw = [
            make_raw(3000, link="c", mall="B"),
            make_raw(1000, link="a", mall="A"),
            make_raw(1000, link="b", mall="B"),
            make_raw(2500, link="d", title="중고 바나나"),
            make_raw(0, link="e"),
        ]
        client = fake_client(default=(raw, 777))
        controller = LowestPriceController(default_config, client=client)

        response = controller.search(" 바나나 ", normalize_filters(exclude=["used"]), target_price=1500)

        assert response.query == "바나나"
        assert response.top1.link == "a"
        assert [item.link for item in response.all_items] == ["a", "b", "c"]
        assert [(g.price, g.count) for g in response.price_groups] == [(1000, 2), (3000, 1)]
        assert response.total_candidates == 3
        assert response.total_reported == 777
        assert response.excluded_by_keywords == 1
        assert response.filter_relaxed is False
        assert response.target_comparison.status == "higher"
        assert sum(b.count for b in response.histogram) == 3
        assert client.calls[0]["sort"] == "asc"

    def test_to_dict_shape(self, fake_client, make_raw, default_config):
        client = fake_client(default=([make_raw(1000)], 1))
        data = LowestPriceController(default_config, client=client).search("q", normalize_filters()).to_dict()

        assert set(data) == {
            "query", "filters", "top1", "price_groups", "price_band", "total_candidates",
            "total_reported", "filter_relaxed", "relaxation_log", "applied_filters",
            "excluded_by_keywords", "all_items", "histogram", "target_comparison",
        }
        assert data["filters"]["exclude"] == ["used", "rental", "cbshop"]
        assert data["applied_filters"]["exclude_keywords_enabled"] is True
        assert data["target_comparison"] is None

    def test_empty_result_is_not_an_error(self, fake_client, default_config):
        controller = LowestPriceController(default_config, client=fake_client())
        response = controller.search("q", normalize_filters())

        assert response.top1 is None
        assert response.price_groups == []
        assert response.price_band is None
        assert response.relaxation_log == ["dropExclude", "reducePages"]

    def test_blank_query_rejected(self, fake_client, default_config):
        client = fake_client()
        with pytest.raises(ValidationError):
            LowestPriceController(default_config, client=client).search("", normalize_filters())
        assert client.calls == []

    def test_refine_delegates(self, fake_client, make_item, default_config):
        controller = LowestPriceController(default_config, client=fake_client())
        items = [make_item(2000, mall="A"), make_item(1000, mall="B")]

        result = controller.refine(items, RefineOptions(malls=frozenset({"A"})))
        assert result.top1.lprice == 2000
