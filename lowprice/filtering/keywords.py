"""
Fixed keyword vocabularies for title-based filtering.

The catalog's own `exclude` parameter misses many listings, so titles are
checked against these lists as a second pass. Both tables are immutable and
handed to the FilterEngine explicitly.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

EXCLUDE_OPTIONS: Tuple[str, ...] = ("used", "rental", "cbshop")

EXCLUDE_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # Used / refurbished / returned / display units / open box / buy-back
    "used": (
        "중고",
        "리퍼",
        "리퍼비시",
        "반품",
        "전시",
        "리뉴얼",
        "테스트",
        "오픈박스",
        "매입",
    ),
    # Rental / lease
    "rental": (
        "렌탈",
        "대여",
        "임대",
        "렌트",
        "대차",
        "리스",
    ),
    # Cross-border shopping / purchasing agents / parallel imports
    "cbshop": (
        "해외직구",
        "직구",
        "구매대행",
        "병행수입",
        "해외배송",
        "역직구",
    ),
})

# Listings that are not a purchasable product instance (quote requests, consultation vouchers)
NOISE_KEYWORDS: Tuple[str, ...] = (
    "견적",
    "상담권",
)


@dataclass(frozen=True)
class KeywordVocabulary:
    exclude_keywords: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: EXCLUDE_KEYWORDS)
    noise_keywords: Tuple[str, ...] = NOISE_KEYWORDS

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self.exclude_keywords.keys())

    def keywords_for(self, categories: Iterable[str]) -> Tuple[str, ...]:
        """All keywords mapped to the given categories; unknown categories contribute nothing."""
        keywords = []
        for category in categories:
            keywords.extend(self.exclude_keywords.get(category, ()))
        return tuple(keywords)


DEFAULT_VOCABULARY = KeywordVocabulary()
