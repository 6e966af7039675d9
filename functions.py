# functions.py
from functools import partial

from inventory import check_inventory, get_product_price
from live_product_search import get_live_product_details, search_live_products
from models import (CheckInventoryParams, LiveDetailsParams, LiveSearchParams, ProductPriceParams,
                    StoreInfoParams)
from registry import CallableOperation
from store_info import get_store_info

function_declarations = [
    {
        "name": "checkInventory",
        "description": "Check if a product is in stock and how many units are available.",
        "parameters": {
            "type": "object",
            "properties": {
                "product_name": {
                    "type": "string",
                    "description": "Name of the product, e.g. 'RTX 4090'"
                },
                "product_sku": {
                    "type": "string",
                    "description": "Product SKU if the customer knows it"
                },
                "category": {
                    "type": "string",
                    "description": "Optional category filter"
                }
            }
        }
    },
    {
        "name": "getProductPrice",
        "description": "Get the price of a product, including quantity discounts.",
        "parameters": {
            "type": "object",
            "properties": {
                "product_identifier": {
                    "type": "string",
                    "description": "Product name or SKU"
                },
                "quantity": {
                    "type": "integer",
                    "description": "Number of units (default 1)"
                }
            },
            "required": ["product_identifier"]
        }
    },
    {
        "name": "searchLiveProducts",
        "description": "Search the store website for current products, prices and availability.",
        "parameters": {
            "type": "object",
            "properties": {
                "product_query": {
                    "type": "string",
                    "description": "What the customer is looking for"
                },
                "category": {
                    "type": "string",
                    "description": "Optional category, e.g. 'graphics cards'"
                },
                "max_results": {
                    "type": "integer",
                    "description": "Number of products to return (1-10, default 5)"
                }
            },
            "required": ["product_query"]
        }
    },
    {
        "name": "getLiveProductDetails",
        "description": "Get detailed information about one product from its page or SKU.",
        "parameters": {
            "type": "object",
            "properties": {
                "product_url": {
                    "type": "string",
                    "description": "Product page URL"
                },
                "product_sku": {
                    "type": "string",
                    "description": "Product SKU"
                }
            }
        }
    },
    {
        "name": "getStoreInfo",
        "description": "Store opening hours, location, contact details and services.",
        "parameters": {
            "type": "object",
            "properties": {
                "info_type": {
                    "type": "string",
                    "description": "Which information to give",
                    "enum": ["hours", "location", "contact", "services", "general"]
                },
                "language": {
                    "type": "string",
                    "description": "Language code: en or el",
                    "enum": ["en", "el"]
                }
            }
        }
    }
]

FALLBACK_MESSAGES = {
    "checkInventory": {
        "en": "I'm having trouble checking our inventory right now. Please call us at 77-111-104 and we'll check it for you.",
        "el": "Αντιμετωπίζω πρόβλημα με τον έλεγχο του αποθέματος αυτή τη στιγμή. Καλέστε μας στο 77-111-104 να το ελέγξουμε για εσάς."
    },
    "getProductPrice": {
        "en": "I can't get pricing information right now. Please call us at 77-111-104 for current prices.",
        "el": "Δεν μπορώ να βρω τιμές αυτή τη στιγμή. Καλέστε μας στο 77-111-104 για τις τρέχουσες τιμές."
    },
    "searchLiveProducts": {
        "en": "I'm having trouble searching our products right now. Please try again or call us at 77-111-104.",
        "el": "Αντιμετωπίζω πρόβλημα με την αναζήτηση προϊόντων αυτή τη στιγμή. Δοκιμάστε ξανά ή καλέστε μας στο 77-111-104."
    },
    "getLiveProductDetails": {
        "en": "I can't get the product details right now. Please try again or call us at 77-111-104.",
        "el": "Δεν μπορώ να βρω τις λεπτομέρειες του προϊόντος αυτή τη στιγμή. Δοκιμάστε ξανά ή καλέστε μας στο 77-111-104."
    },
    "getStoreInfo": {
        "en": "Armenius Store is at 171 Makarios Avenue, Nicosia. You can call us at 77-111-104.",
        "el": "Το Armenius Store βρίσκεται στη Λεωφόρο Μακαρίου 171, Λευκωσία. Καλέστε μας στο 77-111-104."
    }
}


def build_operations(catalog, chain):
    """All callable operations, wired to their data sources"""
    return [
        CallableOperation(
            name="checkInventory",
            executor=partial(check_inventory, catalog),
            cache_ttl_seconds=300,
            fallback_message=FALLBACK_MESSAGES["checkInventory"],
            params_model=CheckInventoryParams,
            input_prompt="ask_inventory_product",
        ),
        CallableOperation(
            name="getProductPrice",
            executor=partial(get_product_price, catalog),
            cache_ttl_seconds=180,
            fallback_message=FALLBACK_MESSAGES["getProductPrice"],
            params_model=ProductPriceParams,
            input_prompt="ask_price_product",
        ),
        CallableOperation(
            name="searchLiveProducts",
            executor=partial(search_live_products, chain),
            cache_ttl_seconds=600,
            fallback_message=FALLBACK_MESSAGES["searchLiveProducts"],
            params_model=LiveSearchParams,
            input_prompt="ask_search_query",
        ),
        CallableOperation(
            name="getLiveProductDetails",
            executor=partial(get_live_product_details, chain),
            cache_ttl_seconds=300,
            fallback_message=FALLBACK_MESSAGES["getLiveProductDetails"],
            params_model=LiveDetailsParams,
            input_prompt="ask_details_identifier",
        ),
        CallableOperation(
            name="getStoreInfo",
            executor=get_store_info,
            cache_ttl_seconds=3600,
            fallback_message=FALLBACK_MESSAGES["getStoreInfo"],
            params_model=StoreInfoParams,
        ),
    ]


def register_all(registry, catalog, chain):
    for operation in build_operations(catalog, chain):
        registry.register(operation)
    return registry
