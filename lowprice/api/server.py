"""
FastAPI server for lowprice.

Thin HTTP boundary: parses query parameters into SearchFilters, delegates to
the controller, and maps errors to safe messages.

Usage:
    python -m lowprice.api.server
    # or
    uvicorn lowprice.api.server:app --reload --port 8000
"""
import os
import time
import traceback
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv
load_dotenv()

from lowprice import __version__
from lowprice.api.models import (
    ErrorResponse,
    HealthResponse,
    LowestPriceResponseModel,
    RefineRequest,
    RefineResponse,
)
from lowprice.core.config import get_config, missing_credentials
from lowprice.core.controller import LowestPriceController, build_cache_key, normalize_filters
from lowprice.data.items import MAX_PRICE, Item
from lowprice.refinement.refiner import RefineOptions, mall_facets
from lowprice.utils.errors import LowPriceError, error_details, error_status_code, to_safe_message
from lowprice.utils.logger import elapsed_ms, get_logger
from lowprice.utils.text import safe_parse_int

logger = get_logger("api.server")


# Initialize FastAPI app
app = FastAPI(
    title="Lowprice API",
    description="Lowest-price search over a product catalog",
    version=__version__,
)


@app.on_event("startup")
async def startup_event():
    """Warn early when catalog credentials are missing."""
    missing = missing_credentials()
    if missing:
        logger.warning(f"Catalog credentials not set: {missing}. Searches will fail until they are configured.")
    else:
        logger.info("Catalog credentials found")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the shared controller's catalog connection pool."""
    global _controller
    if _controller is not None:
        _controller.close()
        _controller = None
        logger.info("Catalog client closed")


# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_controller: Optional[LowestPriceController] = None


def get_controller() -> LowestPriceController:
    """Shared controller; it keeps no per-request state."""
    global _controller
    if _controller is None:
        _controller = LowestPriceController(get_config())
    return _controller


def _parse_price(value: Optional[str]) -> Optional[int]:
    """Lenient price parsing: blank, non-numeric, negative and out-of-range values mean 'not set'."""
    if not value:
        return None
    parsed = safe_parse_int(value, -1)
    return parsed if 0 <= parsed <= MAX_PRICE else None


def _parse_pages(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    parsed = safe_parse_int(value, 0)
    return parsed if parsed >= 1 else None


def _parse_exclude(value: Optional[str]) -> Optional[list]:
    """Colon-separated categories. Absent/blank means the default set."""
    if not value:
        return None
    return [part.strip() for part in value.split(":") if part.strip()]


def _error_response(error: Exception, endpoint: str, started: float, **context) -> JSONResponse:
    details = error_details(error)
    details.update(context)
    details["duration_ms"] = elapsed_ms(started)
    logger.error(f"Error in {endpoint}: {details}")
    if not isinstance(error, LowPriceError):
        logger.error(traceback.format_exc())
    body = ErrorResponse(error=to_safe_message(error))
    return JSONResponse(status_code=error_status_code(error), content=body.model_dump())


# API Endpoints

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="online",
        service="Lowprice API",
        version=__version__,
        config={
            "default_pages": config.default_pages,
            "max_pages": config.max_pages,
            "top_n": config.top_n,
            "timeout_ms": config.timeout_ms,
            "credentials_configured": not missing_credentials(),
        },
    )


@app.get(
    "/lowest",
    response_model=LowestPriceResponseModel,
    responses={code: {"model": ErrorResponse} for code in (400, 500, 502, 504)},
)
def lowest(
    query: str = Query(default="", description="Search text"),
    min_price: Optional[str] = Query(default=None, alias="minPrice"),
    max_price: Optional[str] = Query(default=None, alias="maxPrice"),
    sort: Optional[str] = Query(default=None),
    exclude: Optional[str] = Query(default=None, description="Colon-separated: used:rental:cbshop ('none' disables)"),
    pages: Optional[str] = Query(default=None),
    filter_noise: Optional[str] = Query(default=None, alias="filterNoise"),
    target_price: Optional[str] = Query(default=None, alias="targetPrice"),
    controller: LowestPriceController = Depends(get_controller),
):
    """
    Lowest-price search.

    Fetches catalog pages, filters them (price bounds are never relaxed), and
    returns the cheapest item, ranked price bands and summary statistics.
    """
    started = time.time()
    try:
        filters = normalize_filters(
            min_price=_parse_price(min_price),
            max_price=_parse_price(max_price),
            exclude=_parse_exclude(exclude),
            pages=_parse_pages(pages),
            filter_noise=filter_noise == "true",
            sort=sort,
            config=controller.config,
        )
        result = controller.search(query, filters, target_price=_parse_price(target_price))

        logger.info(
            f"Cache key: {build_cache_key(result.query, filters)}, "
            f"Duration: {elapsed_ms(started)}ms"
        )
        return result.to_dict()

    except Exception as e:
        return _error_response(e, "/lowest", started, query=query)


@app.post("/refine", response_model=RefineResponse, responses={code: {"model": ErrorResponse} for code in (400, 500)})
def refine_results(
    request: RefineRequest,
    controller: LowestPriceController = Depends(get_controller),
):
    """
    Refine an already-fetched result set (no catalog calls).

    Bands and summary statistics are recomputed over the refined subset.
    """
    started = time.time()
    try:
        items = [Item.from_dict(model.model_dump()) for model in request.items]
        price_range = None
        if request.price_min is not None or request.price_max is not None:
            price_range = (
                request.price_min if request.price_min is not None else 0,
                request.price_max if request.price_max is not None else max((i.lprice for i in items), default=0),
            )
        options = RefineOptions(
            trim_outliers=request.trim_outliers,
            malls=frozenset(request.malls),
            price_range=price_range,
            sort=request.sort,
        )
        refined = controller.refine(items, options)

        payload = refined.to_dict()
        payload["mall_facets"] = [{"mall_name": name, "count": count} for name, count in mall_facets(items)]
        return payload

    except Exception as e:
        return _error_response(e, "/refine", started)


if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("Lowprice API Server")
    print("=" * 60)
    print("API Documentation: http://localhost:8000/docs")
    print("Search endpoint:   http://localhost:8000/lowest?query=...")
    print("")
    print("Environment variables:")
    print("  NAVER_CLIENT_ID / NAVER_CLIENT_SECRET - catalog API credentials")
    print("  LOG_LEVEL                            - logging level (default INFO)")
    print("=" * 60)

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
