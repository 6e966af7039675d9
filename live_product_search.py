# Website-first product operations backed by the resolution chain
from language import get_localized_text
from models import LiveDetailsParams, LiveSearchParams, Result
from response_formatter import format_details_not_found, format_not_found, format_product_details, format_products


async def search_live_products(chain, params: LiveSearchParams, context) -> Result:
    locale = context.language
    if not params.product_query:
        return Result(success=True, requires_input=True,
                      message=get_localized_text("ask_search_query", locale))

    resolution = await chain.resolve(params.product_query, params.category, params.max_results, context)
    if not resolution.products:
        return format_not_found(params.product_query, locale)
    return format_products(resolution.products, locale, resolution.tier, query=params.product_query)


async def get_live_product_details(chain, params: LiveDetailsParams, context) -> Result:
    locale = context.language
    if not params.product_url and not params.product_sku:
        return Result(success=True, requires_input=True,
                      message=get_localized_text("ask_details_identifier", locale))

    resolution = await chain.resolve_details(params.product_url, params.product_sku, context)
    if not resolution.products:
        return format_details_not_found(locale)
    return format_product_details(resolution.products[0], locale, resolution.tier)
