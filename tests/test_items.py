"""
Tests for the catalog item normalizer.
"""
import dataclasses

import pytest

from lowprice.data.items import Item, normalize_item, normalize_items


class TestNormalizeItem:
    """Raw catalog dicts -> Item."""

    def test_full_record(self, make_raw):
        item = normalize_item(make_raw(12900, link="https://shop.example/1", mall="몰A"))

        assert item.lprice == 12900
        assert item.hprice == 0
        assert item.title == "<b>바나나</b> 1kg"
        assert item.title_text == "바나나 1kg"
        assert item.mall_name == "몰A"
        assert item.link == "https://shop.example/1"
        assert item.product_id == "1"
        assert item.category1 == "식품"

    def test_empty_optional_fields_become_none(self, make_raw):
        item = normalize_item(make_raw(1000, brand="", maker="  "))
        assert item.brand is None
        assert item.maker is None
        assert item.category2 is None

    def test_missing_fields_never_raise(self):
        item = normalize_item({})
        assert item.title == ""
        assert item.title_text == ""
        assert item.lprice == 0
        assert item.link == ""
        assert not item.has_price

    def test_non_numeric_price_is_unknown(self, make_raw):
        assert normalize_item(make_raw("N/A")).lprice == 0
        assert normalize_item(make_raw("")).lprice == 0

    def test_negative_price_clamped(self, make_raw):
        assert normalize_item(make_raw("-100")).lprice == 0

    def test_out_of_range_price_is_unknown(self, make_raw):
        assert normalize_item(make_raw("99999999999999999999")).lprice == 0
        assert normalize_item(make_raw("9" * 5000)).lprice == 0
        assert normalize_item(make_raw(str(2**62))).lprice == 2**62

    def test_normalize_items_keeps_order(self, make_raw):
        items = normalize_items([make_raw(300), make_raw(100), make_raw(200)])
        assert [i.lprice for i in items] == [300, 100, 200]


class TestItem:

    def test_is_immutable(self, make_item):
        item = make_item(1000)
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.lprice = 1

    def test_from_dict_restores_serialized_item(self, make_raw):
        item = normalize_item(make_raw(4500))
        assert Item.from_dict(item.to_dict()) == item

    def test_from_dict_derives_title_text(self):
        item = Item.from_dict({"title": "<b>귤</b> 5kg", "lprice": 9000, "link": "x"})
        assert item.title_text == "귤 5kg"
        assert item.lprice == 9000
