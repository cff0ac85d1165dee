"""
Tests for the filter chain: price bounds, exclusion keywords, noise keywords,
deduplication and ordering.
"""
from types import MappingProxyType

from lowprice.filtering.filter_engine import FilterEngine, deduplicate_by_link, matches_price, sort_by_price_asc
from lowprice.filtering.keywords import DEFAULT_VOCABULARY, EXCLUDE_OPTIONS, KeywordVocabulary


class TestMatchesPrice:

    def test_unknown_price_never_matches(self, make_item):
        assert not matches_price(make_item(0), None, None)

    def test_bounds_are_inclusive(self, make_item):
        assert matches_price(make_item(1000), 1000, 2000)
        assert matches_price(make_item(2000), 1000, 2000)
        assert not matches_price(make_item(999), 1000, 2000)
        assert not matches_price(make_item(2001), 1000, 2000)

    def test_open_bounds(self, make_item):
        assert matches_price(make_item(5), None, None)
        assert matches_price(make_item(5), None, 10)
        assert matches_price(make_item(50), 10, None)


class TestKeywordVocabulary:

    def test_categories_match_exclude_options(self):
        assert DEFAULT_VOCABULARY.categories == EXCLUDE_OPTIONS

    def test_unknown_category_contributes_nothing(self):
        assert DEFAULT_VOCABULARY.keywords_for(["bogus"]) == ()
        assert "중고" in DEFAULT_VOCABULARY.keywords_for(["used", "bogus"])


class TestFilterEngine:
    """FilterEngine.apply behaviour."""

    def setup_method(self):
        self.engine = FilterEngine()

    def test_zero_price_dropped_without_bounds(self, make_item):
        items = [make_item(0, link="a"), make_item(500, link="b")]
        result = self.engine.apply(items, None, None, None, False)
        assert [i.link for i in result] == ["b"]

    def test_exclude_keyword(self, make_item):
        items = [make_item(1000, title="중고 아이폰", link="a"), make_item(2000, title="아이폰 새제품", link="b")]

        assert [i.link for i in self.engine.apply(items, None, None, ("used",), False)] == ["b"]
        assert len(self.engine.apply(items, None, None, None, False)) == 2

    def test_exclude_only_checks_selected_categories(self, make_item):
        items = [make_item(1000, title="중고 아이폰")]
        assert len(self.engine.apply(items, None, None, ("rental",), False)) == 1

    def test_noise_only_when_enabled(self, make_item):
        items = [make_item(1000, title="설치 견적 문의", link="a"), make_item(3000, link="b")]

        assert [i.link for i in self.engine.apply(items, None, None, None, True)] == ["b"]
        assert len(self.engine.apply(items, None, None, None, False)) == 2

    def test_keyword_match_is_case_insensitive(self, make_item):
        vocabulary = KeywordVocabulary(
            exclude_keywords=MappingProxyType({"used": ("refurbished",)}),
            noise_keywords=(),
        )
        engine = FilterEngine(vocabulary)
        items = [make_item(1000, title="REFURBISHED phone")]
        assert engine.apply(items, None, None, ("used",), False) == []

    def test_matches_markup_free_title(self, make_item):
        item = make_item(1000, title="<b>중</b>고 아이폰")
        assert item.title_text == "중고 아이폰"
        assert self.engine.apply([item], None, None, ("used",), False) == []

    def test_sorted_ascending_and_deduplicated(self, make_item):
        items = [
            make_item(5000, link="same", mall="first"),
            make_item(3000, link="other"),
            make_item(1000, link="same", mall="second"),
        ]
        result = self.engine.apply(items, None, None, None, False)

        assert [i.lprice for i in result] == [3000, 5000]
        assert result[1].mall_name == "first"

    def test_idempotent(self, make_item):
        items = [
            make_item(3000, link="a"),
            make_item(1000, link="b", title="렌탈 정수기"),
            make_item(2000, link="c"),
            make_item(2000, link="a"),
            make_item(0, link="d"),
        ]
        once = self.engine.apply(items, 500, 5000, ("rental",), True)
        twice = self.engine.apply(once, 500, 5000, ("rental",), True)
        assert once == twice

    def test_price_bounds_checked_before_keywords(self, make_item):
        items = [
            make_item(100, title="중고 노트북", link="a"),
            make_item(5000, title="중고 노트북", link="b"),
            make_item(6000, title="노트북", link="c"),
        ]
        assert self.engine.count_excluded_by_keywords(items, 1000, None, ("used",)) == 1

    def test_excluded_count_zero_without_exclude(self, make_item):
        items = [make_item(1000, title="중고 노트북")]
        assert self.engine.count_excluded_by_keywords(items, None, None, ()) == 0
        assert self.engine.count_excluded_by_keywords(items, None, None, None) == 0


class TestHelpers:

    def test_deduplicate_keeps_first(self, make_item):
        items = [make_item(1, link="x", mall="A"), make_item(2, link="x", mall="B")]
        assert [i.mall_name for i in deduplicate_by_link(items)] == ["A"]

    def test_stable_sort_keeps_arrival_order_for_ties(self, make_item):
        items = [
            make_item(2000, mall="A"),
            make_item(1000, mall="B"),
            make_item(2000, mall="C"),
            make_item(1000, mall="D"),
        ]
        assert [i.mall_name for i in sort_by_price_asc(items)] == ["B", "D", "A", "C"]
