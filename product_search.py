"""
Resolution chain for product queries.

Tiers are tried in order and the first one that yields products wins:

1. live website data through the Firecrawl adapter (when configured)
2. a direct fetch of the store's search page, parsed as HTML
3. the Google Sheets catalog

Failures in the first two tiers are logged and reported as degraded paths;
catalog failures propagate to the caller.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from config import (DEFAULT_MAX_RESULTS, MAX_RESULTS, MIN_RESULTS, PRICE_CEILING, STORE_BASE_URL, STORE_DOMAIN,
                    TIER_DEADLINE_SECONDS)
from content_parser import parse, parse_product_details, parse_search_results
from direct_search import DirectSearch, build_product_url, build_search_url
from language import normalize_search_term
from live_data import PRODUCT_PAGE_HINTS, SEARCH_PAGE_HINTS, LiveCapability
from models import NormalizedProduct, ProductSource

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    products: List[NormalizedProduct] = field(default_factory=list)
    tier: Optional[ProductSource] = None


def clamp_max_results(value):
    if value is None:
        return DEFAULT_MAX_RESULTS
    return max(MIN_RESULTS, min(MAX_RESULTS, int(value)))


def rank_products(products, max_results):
    """Relevance descending; sorted() is stable so first-seen wins ties"""
    usable = [product for product in products if product.name and product.name.strip()]
    return sorted(usable, key=lambda product: -product.relevance)[:max_results]


class ResolutionChain:
    def __init__(self, catalog, direct=None, live=None, telemetry=None,
                 price_ceiling=PRICE_CEILING, store_domain=STORE_DOMAIN, base_url=STORE_BASE_URL,
                 tier_deadline=TIER_DEADLINE_SECONDS):
        self.catalog = catalog
        self.direct = direct if direct is not None else DirectSearch(base_url)
        self.live = live if live is not None else LiveCapability.absent("not configured")
        self.telemetry = telemetry
        self.price_ceiling = price_ceiling
        self.store_domain = store_domain
        self.base_url = base_url
        self.tier_deadline = tier_deadline

    # ---------------- Search ----------------

    async def resolve(self, query, category=None, max_results=DEFAULT_MAX_RESULTS, context=None) -> Resolution:
        limit = clamp_max_results(max_results)
        tiers = (
            (ProductSource.LIVE, self._live_search),
            (ProductSource.SCRAPED_FALLBACK, self._direct_search),
        )
        for tier, lookup in tiers:
            products = await self._try_tier(tier, lookup, context, query, category, limit)
            if products:
                logger.info("Resolved '%s' from %s tier (%d products)", query, tier.value, len(products))
                return Resolution(rank_products(products, limit), tier)

        products = await self._catalog_search(query, category, limit)
        logger.info("Resolved '%s' from catalog tier (%d products)", query, len(products))
        return Resolution(rank_products(products, limit), ProductSource.CATALOG if products else None)

    async def _live_search(self, query, category, limit):
        if not self.live.available:
            logger.debug("Live tier skipped: %s", self.live.reason)
            return []
        adapter = self.live.adapter
        search_query = " ".join(part for part in (query, category, f"site:{self.store_domain}") if part)
        response = await adapter.search(search_query, limit=limit)
        products = parse_search_results(response.results, query, self.price_ceiling, self.store_domain)
        if products:
            return products

        # Search API found nothing usable: scrape the store's own search page
        page = await adapter.fetch(build_search_url(query, category, self.base_url), SEARCH_PAGE_HINTS)
        if not page.success:
            return []
        return parse(page.content, query, limit, self.price_ceiling, source=ProductSource.LIVE)

    async def _direct_search(self, query, category, limit):
        markup = await self.direct.fetch_search_page(query, category)
        return parse(markup, query, limit, self.price_ceiling, source=ProductSource.SCRAPED_FALLBACK)

    async def _catalog_search(self, query, category, limit):
        products = []
        exact = await self.catalog.get_by_sku_or_name(query)
        if exact is not None:
            products.append(exact.to_normalized(relevance=1.0))

        filters = {"category": category} if category else None
        for record in await self.catalog.search_by_term(normalize_search_term(query), limit, filters):
            if exact is not None and (record.name, record.sku) == (exact.name, exact.sku):
                continue
            products.append(record.to_normalized())
        return products

    # ---------------- Product details ----------------

    async def resolve_details(self, url=None, sku=None, context=None) -> Resolution:
        """Single product by page URL or SKU, same tier order as `resolve`"""
        page_url = url or (build_product_url(sku, self.base_url) if sku else None)
        if page_url:
            tiers = (
                (ProductSource.LIVE, self._live_details),
                (ProductSource.SCRAPED_FALLBACK, self._direct_details),
            )
            for tier, lookup in tiers:
                products = await self._try_tier(tier, lookup, context, page_url)
                if products:
                    return Resolution(products, tier)

        if sku:
            record = await self.catalog.get_by_sku_or_name(sku)
            if record is not None:
                return Resolution([record.to_normalized(relevance=1.0)], ProductSource.CATALOG)
        return Resolution()

    async def _live_details(self, page_url):
        if not self.live.available:
            return []
        page = await self.live.adapter.fetch(page_url, PRODUCT_PAGE_HINTS)
        if not page.success:
            return []
        product = parse_product_details(page.content, page_url, self.price_ceiling, ProductSource.LIVE)
        return [product] if product else []

    async def _direct_details(self, page_url):
        markup = await self.direct.fetch(page_url)
        product = parse_product_details(markup, page_url, self.price_ceiling, ProductSource.SCRAPED_FALLBACK)
        return [product] if product else []

    # ---------------- Degraded paths ----------------

    async def _try_tier(self, tier, lookup, context, *args):
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(lookup(*args), timeout=self.tier_deadline)
        except Exception as e:
            latency_ms = (time.perf_counter() - started) * 1000
            logger.warning("Degraded path: %s tier failed (%s: %s)", tier.value, type(e).__name__, e)
            if self.telemetry is not None:
                self.telemetry.track(
                    "degraded_path", "resolution_chain",
                    tier=tier.value,
                    latency_ms=latency_ms,
                    success=False,
                    error_class=type(e).__name__,
                    conversation_id=getattr(context, "conversation_id", None),
                )
            return []
