"""Pytest configuration and shared fixtures for lowprice tests."""

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from lowprice.core.config import LowPriceConfig
from lowprice.data.items import Item
from lowprice.utils.text import strip_markup


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Every test sees built-in defaults, never the repo's YAML or a previous test's config."""
    config = LowPriceConfig()
    monkeypatch.setattr("lowprice.core.config._config", config)
    return config


def _item(price: int, link: Optional[str] = None, title: str = "바나나 1kg", mall: str = "shopA", **fields) -> Item:
    return Item(
        title=title,
        title_text=strip_markup(title),
        lprice=price,
        hprice=fields.pop("hprice", 0),
        mall_name=mall,
        link=link or f"https://shop.example/{mall}/{price}/{title}",
        **fields,
    )


def _raw(price, link: Optional[str] = None, title: str = "<b>바나나</b> 1kg", mall: str = "shopA", **fields) -> Dict:
    raw = {
        "title": title,
        "link": link or f"https://shop.example/{mall}/{price}/{title}",
        "image": "https://img.example/1.jpg",
        "lprice": str(price),
        "hprice": "",
        "mallName": mall,
        "productId": "1",
        "productType": "1",
        "brand": "",
        "maker": "",
        "category1": "식품",
        "category2": "",
        "category3": "",
        "category4": "",
    }
    raw.update(fields)
    return raw


@pytest.fixture
def make_item():
    return _item


@pytest.fixture
def make_raw():
    return _raw


class FakeCatalogClient:
    """
    In-memory stand-in for CatalogClient.

    Responses are keyed by (pages, exclude tuple); anything else gets `default`.
    Set `error` to make every call raise.
    """

    def __init__(
        self,
        responses: Optional[Dict[Tuple[int, Tuple[str, ...]], Tuple[List[Dict], int]]] = None,
        default: Tuple[List[Dict], int] = ([], 0),
        error: Optional[Exception] = None,
    ):
        self.responses = responses or {}
        self.default = default
        self.error = error
        self.calls: List[Dict] = []
        self.closed = False

    def fetch_pages(self, query: str, pages: int, sort: str, exclude: Sequence[str] = ()):
        self.calls.append({"query": query, "pages": pages, "sort": sort, "exclude": tuple(exclude)})
        if self.error is not None:
            raise self.error
        items, total = self.responses.get((pages, tuple(exclude)), self.default)
        return list(items), total

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeCatalogClient
