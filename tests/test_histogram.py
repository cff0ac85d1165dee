"""
Tests for the equal-width price histogram.
"""
from lowprice.aggregation.histogram import build_price_histogram


def items_at(make_item, prices):
    return [make_item(price, link=f"https://shop.example/{i}") for i, price in enumerate(prices)]


class TestBuildPriceHistogram:

    def test_empty(self):
        assert build_price_histogram([]) == []

    def test_single_price_single_bucket(self, make_item):
        buckets = build_price_histogram(items_at(make_item, [5000] * 4))

        assert len(buckets) == 1
        assert buckets[0].min_price == buckets[0].max_price == 5000
        assert buckets[0].count == 4

    def test_equal_width_buckets(self, make_item):
        buckets = build_price_histogram(items_at(make_item, [1000, 2000, 3000]), bucket_count=4)

        assert [(b.min_price, b.max_price) for b in buckets] == [
            (1000, 1500), (1500, 2000), (2000, 2500), (2500, 3000),
        ]
        assert [b.count for b in buckets] == [1, 0, 1, 1]

    def test_counts_cover_every_item(self, make_item):
        prices = [1200, 1300, 4000, 9900, 15000, 15000, 30000]
        buckets = build_price_histogram(items_at(make_item, prices))

        assert len(buckets) == 20
        assert sum(b.count for b in buckets) == len(prices)
        assert buckets[0].min_price == 1200
        assert buckets[-1].max_price == 30000
        assert buckets[-1].count == 1
