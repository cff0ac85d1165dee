"""
HTTP client for the product catalog search API.

Fetches a bounded number of fixed-size pages strictly one after another (the
upstream has an informal rate budget) and concatenates their items in fetch
order. Any page failure aborts the whole fetch; there are no retries here.
"""
from __future__ import annotations

import json
import time
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from lowprice.core.config import LowPriceConfig, get_config, get_credentials
from lowprice.data.items import RawCatalogItem
from lowprice.utils.errors import UpstreamError, UpstreamTimeout
from lowprice.utils.logger import elapsed_ms, get_logger
from lowprice.utils.text import safe_parse_int

logger = get_logger("data.catalog_client")


class CatalogResponse(BaseModel):
    """Minimal shape we rely on from one page of catalog results."""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0


def iter_page_offsets(
    pages: int,
    page_size: int = 100,
    max_pages: int = 10,
    max_start: int = 1000,
) -> Iterator[int]:
    """
    Yield 1-based start offsets: 1, 1 + page_size, 1 + 2 * page_size, ...

    Stops after `pages` (capped at `max_pages`) offsets, or as soon as an
    offset would exceed `max_start`.
    """
    for i in range(min(pages, max_pages)):
        start = 1 + i * page_size
        if start > max_start:
            return
        yield start


def parse_catalog_payload(payload: Any) -> Tuple[List[RawCatalogItem], int]:
    """
    Best-effort parse of a decoded response body.

    Missing or mistyped `items` / `total` degrade to empty / zero instead of failing.
    """
    try:
        parsed = CatalogResponse.model_validate(payload)
        return parsed.items, parsed.total
    except PydanticValidationError as e:
        logger.warning(f"Catalog response shape mismatch, falling back to lenient parse: {e.error_count()} errors")

    if not isinstance(payload, dict):
        return [], 0
    items = payload.get("items")
    if not isinstance(items, list):
        items = []
    items = [item for item in items if isinstance(item, dict)]
    return items, max(0, safe_parse_int(payload.get("total"), 0))


class CatalogClient:
    """
    Synchronous client for the catalog search endpoint.

    Credentials are sent as two opaque headers. They default to the
    NAVER_CLIENT_ID / NAVER_CLIENT_SECRET environment variables.
    """

    def __init__(
        self,
        config: Optional[LowPriceConfig] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or get_config()
        env_id, env_secret = get_credentials()
        self.client_id = client_id or env_id
        self.client_secret = client_secret or env_secret
        self.http = httpx.Client(timeout=self.config.timeout_seconds, transport=transport)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        if not self.client_id or not self.client_secret:
            raise UpstreamError("Catalog API credentials are not configured")
        return {
            "X-Naver-Client-Id": self.client_id,
            "X-Naver-Client-Secret": self.client_secret,
        }

    def build_params(
        self,
        query: str,
        start: int,
        sort: str,
        exclude: Sequence[str] = (),
    ) -> Dict[str, str]:
        params = {
            "query": query,
            "display": str(self.config.page_size),
            "start": str(start),
            "sort": sort,
        }
        if exclude:
            params["exclude"] = ":".join(exclude)
        return params

    def page_offsets(self, pages: int) -> List[int]:
        return list(iter_page_offsets(
            pages,
            page_size=self.config.page_size,
            max_pages=self.config.max_pages,
            max_start=self.config.max_start,
        ))

    def _read_body(self, response: httpx.Response, deadline: float, start: int) -> bytes:
        """
        Read the streamed body, failing once the per-page deadline has passed.

        httpx timeouts bound each connect/read step only; this bounds the whole
        call so a server trickling bytes cannot hold a page open indefinitely.
        """
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if time.monotonic() > deadline:
                logger.error(f"Catalog response exceeded {self.config.timeout_ms}ms while reading (start={start})")
                raise UpstreamTimeout("Catalog request timed out")
        return b"".join(chunks)

    def fetch_page(
        self,
        query: str,
        start: int,
        sort: str,
        exclude: Sequence[str] = (),
    ) -> Tuple[List[RawCatalogItem], int]:
        """
        Fetch a single page within one overall deadline of `timeout_ms`.

        Raises:
            UpstreamTimeout: the call exceeded the configured timeout
            UpstreamError: transport failure, non-2xx status, or a body that is not JSON
        """
        params = self.build_params(query, start, sort, exclude)
        headers = self._headers()
        deadline = time.monotonic() + self.config.timeout_seconds

        try:
            with self.http.stream("GET", self.config.endpoint, params=params, headers=headers) as response:
                content = self._read_body(response, deadline, start)
        except httpx.TimeoutException as e:
            logger.error(f"Catalog request timed out after {self.config.timeout_ms}ms (start={start})")
            raise UpstreamTimeout("Catalog request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Catalog request failed (start={start}): {e}")
            raise UpstreamError("Catalog request failed") from e

        try:
            body = content.decode(response.charset_encoding or "utf-8", errors="replace")
        except LookupError:
            body = content.decode("utf-8", errors="replace")
        if not response.is_success:
            logger.error(f"Catalog responded with HTTP {response.status_code} (start={start}): {body[:500]}")
            raise UpstreamError(
                f"Catalog responded with HTTP {response.status_code}",
                status=response.status_code,
                body=body,
            )

        try:
            payload = json.loads(body)
        except ValueError as e:
            logger.error(f"Catalog response is not valid JSON (start={start})")
            raise UpstreamError("Catalog response is not valid JSON", status=response.status_code, body=body) from e

        return parse_catalog_payload(payload)

    def fetch_pages(
        self,
        query: str,
        pages: int,
        sort: str,
        exclude: Sequence[str] = (),
    ) -> Tuple[List[RawCatalogItem], int]:
        """
        Fetch up to `pages` pages sequentially.

        Returns:
            Tuple of:
            - Items from every page, in fetch order
            - Total hit count reported by the last page fetched (approximate upstream figure)
        """
        all_items: List[RawCatalogItem] = []
        total_reported = 0

        for start in self.page_offsets(pages):
            started = time.time()
            items, total = self.fetch_page(query, start, sort, exclude)
            all_items.extend(items)
            total_reported = total
            logger.info(
                f"Fetched page start={start}: {len(items)} items "
                f"(reported total {total}, {elapsed_ms(started)}ms)"
            )

        logger.info(f"Fetched {len(all_items)} items for '{query}' ({pages} pages requested, exclude={list(exclude)})")
        return all_items, total_reported
