"""
Live website data through the Firecrawl API.

The capability is optional: without an API key the adapter is simply not
available and callers fall through to the next data source. Whether it is
present is decided once at startup by `check_live_capability` and handed to
the resolution chain explicitly.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from config import FIRECRAWL_API_KEY, FIRECRAWL_API_URL, LIVE_TIMEOUT_SECONDS
from errors import LiveDataUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT = "Armenius-Store-Voice-Assistant/1.0"


@dataclass(frozen=True)
class ExtractionHints:
    include_tags: Tuple[str, ...] = ()
    exclude_tags: Tuple[str, ...] = ()
    wait_for_ms: int = 2000
    only_main_content: bool = True


SEARCH_PAGE_HINTS = ExtractionHints(
    include_tags=(".product", ".product-item", "article"),
    exclude_tags=("nav", "footer", ".ads"),
    wait_for_ms=2000,
)
PRODUCT_PAGE_HINTS = ExtractionHints(
    include_tags=(".product-details", ".product-info", "main"),
    exclude_tags=("nav", "footer", ".recommendations"),
    wait_for_ms=3000,
)


@dataclass
class LiveResponse:
    success: bool
    results: List[Dict[str, Any]] = field(default_factory=list)
    content: Optional[str] = None


class FirecrawlAdapter:
    """Search and scrape calls against the Firecrawl HTTP API.

    Failures of any kind (timeouts, HTTP errors, malformed bodies) raise
    LiveDataUnavailableError.
    """

    def __init__(self, api_key, base_url=FIRECRAWL_API_URL, timeout=LIVE_TIMEOUT_SECONDS, client=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    async def search(self, query, filters=None, limit=5) -> LiveResponse:
        payload = {
            "query": query,
            "limit": limit,
            "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
        }
        if filters and filters.get("category"):
            payload["query"] = f"{query} {filters['category']}"
        body = await self._post("/search", payload)
        results = body.get("data") or []
        if not isinstance(results, list):
            raise LiveDataUnavailableError("Unexpected search response shape")
        return LiveResponse(success=bool(body.get("success", True)), results=results)

    async def fetch(self, url, hints: Optional[ExtractionHints] = None) -> LiveResponse:
        hints = hints or ExtractionHints()
        payload = {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": hints.only_main_content,
            "includeTags": list(hints.include_tags),
            "excludeTags": list(hints.exclude_tags),
            "waitFor": hints.wait_for_ms,
            "timeout": int(self.timeout * 1000),
        }
        body = await self._post("/scrape", payload)
        data = body.get("data") or {}
        content = data.get("markdown") if isinstance(data, dict) else None
        return LiveResponse(success=bool(body.get("success", True)) and bool(content), content=content)

    async def _post(self, path, payload):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        url = f"{self.base_url}{path}"
        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise LiveDataUnavailableError(f"Firecrawl {path} timed out") from e
        except httpx.HTTPError as e:
            raise LiveDataUnavailableError(f"Firecrawl {path} failed: {e}") from e
        except ValueError as e:
            raise LiveDataUnavailableError(f"Firecrawl {path} returned invalid JSON") from e


@dataclass(frozen=True)
class LiveCapability:
    """Outcome of the startup check for the live data capability."""
    available: bool
    adapter: Optional[FirecrawlAdapter] = None
    reason: Optional[str] = None

    @classmethod
    def absent(cls, reason):
        return cls(available=False, reason=reason)

    @classmethod
    def present(cls, adapter):
        return cls(available=True, adapter=adapter)


def check_live_capability(api_key=FIRECRAWL_API_KEY, client=None) -> LiveCapability:
    if not api_key:
        logger.info("Live data capability absent: FIRECRAWL_API_KEY not set")
        return LiveCapability.absent("FIRECRAWL_API_KEY not set")
    return LiveCapability.present(FirecrawlAdapter(api_key, client=client))
