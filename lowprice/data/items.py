"""
Catalog item model and normalizer.

Raw catalog records arrive as loosely-typed dicts (prices as text, optional
fields as empty strings). `normalize_item` maps one of them into an immutable
`Item`; it never raises.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from lowprice.utils.text import safe_parse_int, strip_markup

# Upstream record: title, link, image, lprice, hprice, mallName, productId,
# productType, brand, maker, category1..category4. Only lives for one fetch.
RawCatalogItem = Dict[str, Any]

# Largest price kept from upstream (int64 range); anything above is treated as unknown
MAX_PRICE = 2**63 - 1

OPTIONAL_TEXT_FIELDS = (
    "image",
    "brand",
    "maker",
    "category1",
    "category2",
    "category3",
    "category4",
)


@dataclass(frozen=True)
class Item:
    """Normalized catalog item. `lprice == 0` means the price is unknown."""

    title: str                      # Markup-bearing, for display
    title_text: str                 # Markup stripped, for keyword matching
    lprice: int
    hprice: int
    mall_name: str
    link: str                       # Natural identifier for deduplication
    product_id: str = ""
    product_type: str = ""
    image: Optional[str] = None
    brand: Optional[str] = None
    maker: Optional[str] = None
    category1: Optional[str] = None
    category2: Optional[str] = None
    category3: Optional[str] = None
    category4: Optional[str] = None

    @property
    def has_price(self) -> bool:
        return self.lprice > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Item":
        """Rebuild an item previously serialized with `to_dict`."""
        title = _text(data.get("title"))
        return cls(
            title=title,
            title_text=_text(data.get("title_text")) or strip_markup(title),
            lprice=_price(data.get("lprice")),
            hprice=_price(data.get("hprice")),
            mall_name=_text(data.get("mall_name")),
            link=_text(data.get("link")),
            product_id=_text(data.get("product_id")),
            product_type=_text(data.get("product_type")),
            **{name: _optional_text(data.get(name)) for name in OPTIONAL_TEXT_FIELDS},
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _price(value: Any) -> int:
    price = safe_parse_int(value, 0)
    return price if 0 < price <= MAX_PRICE else 0


def normalize_item(raw: Mapping[str, Any]) -> Item:
    """Map one raw catalog record into an `Item`."""
    title = _text(raw.get("title"))
    return Item(
        title=title,
        title_text=strip_markup(title),
        lprice=_price(raw.get("lprice")),
        hprice=_price(raw.get("hprice")),
        mall_name=_text(raw.get("mallName")),
        link=_text(raw.get("link")),
        product_id=_text(raw.get("productId")),
        product_type=_text(raw.get("productType")),
        **{name: _optional_text(raw.get(name)) for name in OPTIONAL_TEXT_FIELDS},
    )


def normalize_items(raw_items: Iterable[Mapping[str, Any]]) -> List[Item]:
    return [normalize_item(raw) for raw in raw_items]
