# Direct HTTP fetch of the store's public pages, used when live data is unavailable
import logging
from urllib.parse import urlencode

import httpx

from config import DIRECT_FETCH_TIMEOUT_SECONDS, STORE_BASE_URL
from errors import DirectFetchError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; Armenius-Voice-Assistant/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def build_search_url(query, category=None, base_url=STORE_BASE_URL):
    params = {"q": query}
    if category:
        params["category"] = category
    return f"{base_url}/search?{urlencode(params)}"


def build_product_url(sku, base_url=STORE_BASE_URL):
    return f"{base_url}/product/{sku}"


class DirectSearch:
    """Plain GET of store pages. Any failure raises DirectFetchError."""

    def __init__(self, base_url=STORE_BASE_URL, timeout=DIRECT_FETCH_TIMEOUT_SECONDS, client=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    async def fetch_search_page(self, query, category=None):
        return await self.fetch(build_search_url(query, category, self.base_url))

    async def fetch(self, url):
        logger.debug("Direct fetch: %s", url)
        try:
            if self.client is not None:
                response = await self.client.get(url, headers=BROWSER_HEADERS, timeout=self.timeout,
                                                 follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=BROWSER_HEADERS)
        except httpx.TimeoutException as e:
            raise DirectFetchError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            raise DirectFetchError(f"Failed fetching {url}: {e}") from e

        if response.status_code != 200:
            raise DirectFetchError(f"HTTP {response.status_code} fetching {url}")
        logger.debug("Retrieved %d characters of HTML", len(response.text))
        return response.text
