"""Operation bodies: inventory, pricing, live search and store information."""
import asyncio

from conftest import FakeDirect
from inventory import check_inventory, get_product_price, quantity_discount
from live_product_search import get_live_product_details, search_live_products
from models import (CallContext, CheckInventoryParams, LiveDetailsParams, LiveSearchParams, ProductPriceParams,
                    StoreInfoParams)
from product_search import ResolutionChain
from store_info import get_store_info

EN = CallContext(language="en")
EL = CallContext(language="el")


class TestCheckInventory:
    def test_out_of_stock_sku_offers_alternatives(self, catalog):
        result = asyncio.run(check_inventory(catalog, CheckInventoryParams(product_sku="SKU123"), EN))

        assert result.success is True
        assert result.data["available"] is False
        assert result.data["product"]["sku"] == "SKU123"
        assert result.data["alternatives"]
        assert all(item["stock"] > 0 for item in result.data["alternatives"])
        assert "AMD Ryzen 9 7950X is currently out of stock" in result.message
        assert "Similar items in stock" in result.message

    def test_in_stock_sku(self, catalog):
        result = asyncio.run(check_inventory(catalog, CheckInventoryParams(product_sku="ssd-990"), EN))

        assert result.data["available"] is True
        assert "We have 20 units available at €179.50" in result.message

    def test_name_with_several_matches_lists_them(self, catalog):
        result = asyncio.run(check_inventory(catalog, CheckInventoryParams(product_name="processor"), EN))

        assert result.data["count"] == 2
        assert result.message.startswith('I found 2 products matching "processor"')

    def test_unknown_product_suggests_popular_items(self, catalog):
        result = asyncio.run(check_inventory(catalog, CheckInventoryParams(product_name="hoverboard"), EL))

        assert result.data["available"] is False
        assert result.data["products"] == []
        # best sellers: most units in stock first
        assert result.data["alternatives"][0]["name"] == "Samsung 990 Pro 2TB"
        assert "hoverboard" in result.message

    def test_missing_product_asks_for_input(self, catalog, worksheet):
        result = asyncio.run(check_inventory(catalog, CheckInventoryParams(), EN))

        assert result.requires_input is True
        assert worksheet.reads == 0


class TestProductPrice:
    def test_quantity_discounts(self):
        assert quantity_discount(1) == (None, 0)
        assert quantity_discount(5) == (5, 5)
        assert quantity_discount(12) == (10, 10)

    def test_bulk_price(self, catalog):
        params = ProductPriceParams(product_identifier="SSD-990", quantity=10)

        result = asyncio.run(get_product_price(catalog, params, EN))

        assert result.data["unitPrice"] == 161.55
        assert result.data["totalPrice"] == 1615.5
        assert result.data["discountPercent"] == 10
        assert "(10% discount for 10+ items)" in result.message

    def test_single_unit_has_no_discount_note(self, catalog):
        params = ProductPriceParams(product_identifier="Intel Core i7-14700K")

        result = asyncio.run(get_product_price(catalog, params, EN))

        assert result.message.startswith("Intel Core i7-14700K costs €429.00 each.")

    def test_ambiguous_identifier_lists_choices(self, catalog):
        result = asyncio.run(get_product_price(catalog, ProductPriceParams(product_identifier="rtx"), EN))

        assert result.requires_input is True
        assert result.data["count"] == 2

    def test_unknown_identifier(self, catalog):
        result = asyncio.run(get_product_price(catalog, ProductPriceParams(product_identifier="hoverboard"), EN))

        assert result.requires_input is True
        assert "hoverboard" in result.message


class TestLiveSearch:
    def test_catalog_results_are_formatted(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)
        params = LiveSearchParams(product_query="RTX 4090")

        result = asyncio.run(search_live_products(chain, params, EN))

        assert result.success is True
        assert result.data["dataSource"] == "catalog"
        assert "from our database" in result.message
        assert "€1699.99" in result.message

    def test_nothing_found_in_greek(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        result = asyncio.run(search_live_products(chain, LiveSearchParams(product_query="zzqqxx"), EL))

        assert result.success is True
        assert len(result.data["suggestedCategories"]) >= 3

    def test_missing_query(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        result = asyncio.run(search_live_products(chain, LiveSearchParams(), EN))

        assert result.requires_input is True

    def test_details_by_sku(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        result = asyncio.run(get_live_product_details(chain, LiveDetailsParams(product_sku="RTX3060-MSI"), EN))

        assert result.data["product"]["name"] == "MSI RTX 3060 Ventus"
        assert result.data["dataSource"] == "catalog"

    def test_details_not_found(self, catalog, live_absent):
        chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent)

        result = asyncio.run(get_live_product_details(chain, LiveDetailsParams(product_sku="NOPE"), EN))

        assert result.requires_input is True


class TestStoreInfo:
    def test_hours_in_greek(self):
        result = asyncio.run(get_store_info(StoreInfoParams(info_type="hours"), EL))

        assert "Δευτέρα" in result.message
        assert result.data["infoType"] == "hours"

    def test_unknown_type_gives_general_information(self):
        result = asyncio.run(get_store_info(StoreInfoParams(info_type="parking"), EN))

        assert result.data["infoType"] == "general"
        assert "77-111-104" in result.message
        assert "171 Makarios Avenue" in result.message
