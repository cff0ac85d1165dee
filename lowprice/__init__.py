"""
lowprice - lowest-price search over a product catalog API

Fetches several pages of catalog results and derives a trustworthy lowest
price from noisy, duplicated listings:
- Ordered price / category-keyword / noise-keyword filtering
- Progressive relaxation of non-price constraints on empty results
- Exact-price bands with weighted summary statistics
- Client-side refinement (IQR outlier trim, mall facets, price range)
"""

from lowprice.core.controller import LowestPriceController, LowestPriceResponse, create_controller, normalize_filters
from lowprice.core.config import LowPriceConfig, get_config, set_config

__all__ = [
    'LowestPriceController',
    'LowestPriceResponse',
    'create_controller',
    'normalize_filters',
    'LowPriceConfig',
    'get_config',
    'set_config',
]

__version__ = '0.1.0'
