"""
API module for lowprice.

Provides REST API endpoints for the search UI.
"""
from lowprice.api.models import (
    ItemModel,
    LowestPriceResponseModel,
    RefineRequest,
    RefineResponse,
    HealthResponse,
)

__all__ = [
    "ItemModel",
    "LowestPriceResponseModel",
    "RefineRequest",
    "RefineResponse",
    "HealthResponse",
]
