import asyncio

import pytest

from catalog_store import CatalogStore
from conftest import FakeDirect, FakeLiveAdapter, FakeWorksheet
from errors import CatalogUnavailableError
from live_data import LiveCapability
from models import NormalizedProduct, ProductSource
from product_search import ResolutionChain, clamp_max_results, rank_products

SEARCH_PAGE = """
<div class="results">
  <h2 class="product-title">RTX 3060</h2><span class="price">€329.00</span>
  <h2 class="product-title">RTX 4090 Gaming</h2><span class="price">€1,699.99</span>
</div>
"""

LIVE_RESULTS = [
    {"title": "ASUS RTX 4090 OC", "url": "https://armenius.com.cy/product/rtx-4090-oc",
     "markdown": "ASUS RTX 4090 OC graphics card\nPrice: €1,849.00\nIn stock"},
    {"title": "Unrelated forum post", "url": "https://example.org/forum/rtx",
     "markdown": "Someone paid €2,000 for an RTX 4090"},
]


class TestTierOrder:
    def test_catalog_answers_when_live_absent_and_direct_fails(self, catalog, telemetry, sink, live_absent):
        direct = FakeDirect(html=None)
        chain = ResolutionChain(catalog, direct, live_absent, telemetry)

        resolution = asyncio.run(chain.resolve("RTX 4090", max_results=5))

        assert resolution.tier is ProductSource.CATALOG
        assert resolution.products[0].name == "ASUS ROG Strix RTX 4090 Gaming"
        assert all(product.source is ProductSource.CATALOG for product in resolution.products)
        degraded = sink.of_type("degraded_path")
        assert [event.tier for event in degraded] == ["scraped-fallback"]
        assert degraded[0].error_class == "DirectFetchError"

    def test_live_failure_falls_through_every_tier(self, catalog, telemetry, sink, failing_live):
        chain = ResolutionChain(catalog, FakeDirect(html=None), failing_live, telemetry)

        resolution = asyncio.run(chain.resolve("RTX 4090"))

        assert resolution.tier is ProductSource.CATALOG
        assert [event.tier for event in sink.of_type("degraded_path")] == ["live", "scraped-fallback"]

    def test_slow_live_tier_is_cut_off_at_deadline(self, catalog, telemetry, sink):
        adapter = FakeLiveAdapter(results=LIVE_RESULTS, delay=5)
        chain = ResolutionChain(catalog, FakeDirect(html=None), LiveCapability.present(adapter), telemetry,
                                tier_deadline=0.05)

        resolution = asyncio.run(chain.resolve("RTX 4090"))

        assert resolution.tier is ProductSource.CATALOG
        live_event = sink.of_type("degraded_path")[0]
        assert live_event.tier == "live"
        assert live_event.error_class == "TimeoutError"
        assert live_event.latency_ms < 1000

    def test_live_results_short_circuit_later_tiers(self, worksheet, catalog):
        adapter = FakeLiveAdapter(results=LIVE_RESULTS)
        direct = FakeDirect(html=SEARCH_PAGE)
        chain = ResolutionChain(catalog, direct, LiveCapability.present(adapter))

        resolution = asyncio.run(chain.resolve("RTX 4090", "graphics cards"))

        assert resolution.tier is ProductSource.LIVE
        assert direct.calls == 0
        assert worksheet.reads == 0
        # off-domain hits are dropped
        assert [product.name for product in resolution.products] == ["ASUS RTX 4090 OC"]
        assert resolution.products[0].price == 1849.0
        assert resolution.products[0].in_stock is True

    def test_live_scrape_is_tried_when_search_finds_nothing(self, worksheet, catalog):
        adapter = FakeLiveAdapter(results=[], content="## Samsung 990 Pro 2TB\nPrice: €179.50\nIn stock")
        chain = ResolutionChain(catalog, FakeDirect(html=None), LiveCapability.present(adapter))

        resolution = asyncio.run(chain.resolve("samsung 990"))

        assert adapter.searches == 1
        assert adapter.fetches == 1
        assert resolution.tier is ProductSource.LIVE
        assert resolution.products[0].name == "Samsung 990 Pro 2TB"
        assert worksheet.reads == 0

    def test_direct_fetch_short_circuits_catalog(self, worksheet, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=SEARCH_PAGE), live_absent)

        resolution = asyncio.run(chain.resolve("RTX 4090 Gaming"))

        assert resolution.tier is ProductSource.SCRAPED_FALLBACK
        assert worksheet.reads == 0
        assert all(product.in_stock is None for product in resolution.products)

    def test_catalog_failure_propagates(self, live_absent):
        catalog = CatalogStore(FakeWorksheet(error=ConnectionError("quota exceeded")))
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        with pytest.raises(CatalogUnavailableError):
            asyncio.run(chain.resolve("RTX 4090"))

    def test_nothing_found_anywhere(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        resolution = asyncio.run(chain.resolve("zzqqxx"))

        assert resolution.products == []
        assert resolution.tier is None


class TestRanking:
    def test_best_match_ranks_first(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=SEARCH_PAGE), live_absent)

        resolution = asyncio.run(chain.resolve("RTX 4090 Gaming"))

        assert [product.name for product in resolution.products] == ["RTX 4090 Gaming", "RTX 3060"]
        assert resolution.products[0].price == 1699.99

    def test_ties_keep_first_seen_order(self):
        products = [
            NormalizedProduct(name="First", source=ProductSource.LIVE, relevance=0.5),
            NormalizedProduct(name="Second", source=ProductSource.LIVE, relevance=0.5),
            NormalizedProduct(name="Best", source=ProductSource.LIVE, relevance=0.9),
            NormalizedProduct(name="  ", source=ProductSource.LIVE, relevance=1.0),
        ]

        assert [product.name for product in rank_products(products, 5)] == ["Best", "First", "Second"]

    def test_truncates_to_max_results(self):
        products = [NormalizedProduct(name=f"Item {i}", source=ProductSource.LIVE) for i in range(20)]

        assert len(rank_products(products, 3)) == 3

    @pytest.mark.parametrize("requested, expected", [(None, 5), (0, 1), (3, 3), (50, 10)])
    def test_max_results_is_clamped(self, requested, expected):
        assert clamp_max_results(requested) == expected


class TestDetails:
    def test_sku_falls_back_to_catalog(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        resolution = asyncio.run(chain.resolve_details(sku="SSD-990"))

        assert resolution.tier is ProductSource.CATALOG
        assert resolution.products[0].name == "Samsung 990 Pro 2TB"

    def test_live_product_page(self, worksheet, catalog):
        page = "# ASUS RTX 4090 OC\n\nPrice: €1,849.00\n\nAvailability: In stock\n\n## Specifications\n24GB GDDR6X"
        adapter = FakeLiveAdapter(content=page)
        chain = ResolutionChain(catalog, FakeDirect(html=None), LiveCapability.present(adapter))

        resolution = asyncio.run(chain.resolve_details(url="https://armenius.com.cy/product/rtx-4090-oc"))

        product = resolution.products[0]
        assert resolution.tier is ProductSource.LIVE
        assert product.name == "ASUS RTX 4090 OC"
        assert product.price == 1849.0
        assert product.in_stock is True
        assert product.specifications.startswith("Specifications")
        assert worksheet.reads == 0

    def test_unknown_url_without_sku_finds_nothing(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        resolution = asyncio.run(chain.resolve_details(url="https://armenius.com.cy/product/missing"))

        assert resolution.products == []
