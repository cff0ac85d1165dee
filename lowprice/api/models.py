"""
Pydantic models for lowprice API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from lowprice.data.items import MAX_PRICE


class ItemModel(BaseModel):
    """A normalized catalog item, as returned in `all_items`."""
    title: str
    title_text: str = ""
    lprice: int = Field(default=0, ge=0, le=MAX_PRICE)
    hprice: int = Field(default=0, ge=0, le=MAX_PRICE)
    mall_name: str = ""
    link: str
    product_id: str = ""
    product_type: str = ""
    image: Optional[str] = None
    brand: Optional[str] = None
    maker: Optional[str] = None
    category1: Optional[str] = None
    category2: Optional[str] = None
    category3: Optional[str] = None
    category4: Optional[str] = None


class LowestPriceResponseModel(BaseModel):
    """Response model for the lowest-price search endpoint."""
    query: str = Field(description="Search query as executed")
    filters: Dict[str, Any] = Field(description="Normalized requested filters")
    top1: Optional[Dict[str, Any]] = Field(default=None, description="Cheapest item")
    price_groups: List[Dict[str, Any]] = Field(default_factory=list, description="Ranked exact-price bands")
    price_band: Optional[Dict[str, Any]] = Field(default=None, description="Weighted summary over the bands")
    total_candidates: int = Field(description="Items left after filtering")
    total_reported: int = Field(description="Approximate total reported by the catalog (last page)")
    filter_relaxed: bool = Field(description="Whether any relaxation step fired")
    relaxation_log: List[str] = Field(default_factory=list, description="Relaxation steps in firing order")
    applied_filters: Dict[str, Any] = Field(description="Constraints enforced in the final round")
    excluded_by_keywords: int = Field(default=0, description="Items removed by exclusion keywords")
    all_items: List[Dict[str, Any]] = Field(default_factory=list, description="All filtered items, price ascending")
    histogram: List[Dict[str, Any]] = Field(default_factory=list, description="Equal-width price histogram")
    target_comparison: Optional[Dict[str, Any]] = Field(default=None, description="Target price vs lowest price")


class RefineRequest(BaseModel):
    """Request model for client-side refinement of an existing result set."""
    items: List[ItemModel] = Field(description="Items from a previous search")
    trim_outliers: bool = Field(default=False, description="Drop IQR outliers")
    malls: List[str] = Field(default_factory=list, description="Keep only these malls (empty = all)")
    price_min: Optional[int] = Field(default=None, ge=0, le=MAX_PRICE, description="Inclusive lower price bound")
    price_max: Optional[int] = Field(default=None, ge=0, le=MAX_PRICE, description="Inclusive upper price bound")
    sort: str = Field(default="asc", description="'asc', 'dsc', or any other value to keep order")


class RefineResponse(BaseModel):
    """Response model for client-side refinement."""
    items: List[Dict[str, Any]]
    top1: Optional[Dict[str, Any]] = None
    price_groups: List[Dict[str, Any]] = Field(default_factory=list)
    price_band: Optional[Dict[str, Any]] = None
    histogram: List[Dict[str, Any]] = Field(default_factory=list)
    outlier_bounds: Optional[List[float]] = None
    removed_outliers: int = 0
    total_candidates: int = 0
    mall_facets: List[Dict[str, Any]] = Field(default_factory=list, description="Mall names with counts")


class ErrorResponse(BaseModel):
    """Error body returned by /lowest and /refine (schema violations keep FastAPI's 422 shape)."""
    error: str = Field(description="Message safe to show to end users")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any]
