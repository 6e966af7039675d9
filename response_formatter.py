# Turns resolved products into the spoken message and structured payload
from config import CURRENCY_SYMBOL
from language import get_category_suggestions, get_localized_text
from models import ProductSource, Result

DESCRIPTION_LENGTH = 200


def format_price(price):
    return f"{CURRENCY_SYMBOL}{price:.2f}"


def stock_phrase(in_stock, locale):
    if in_stock is None:
        return None
    return get_localized_text("in_stock" if in_stock else "out_of_stock", locale)


def source_phrase(source_tier, locale):
    if source_tier in (ProductSource.LIVE, ProductSource.SCRAPED_FALLBACK):
        return get_localized_text("source_live", locale)
    return get_localized_text("source_database", locale)


def product_line(index, product, locale):
    line = f"{index}. {product.name}"
    if product.price is not None:
        line += f" – {format_price(product.price)}"
    stock = stock_phrase(product.in_stock, locale)
    if stock:
        line += f" ({stock})"
    return line


def format_products(products, locale, source_tier, query=None) -> Result:
    """Numbered product list with provenance and a follow-up question"""
    if not products:
        return format_not_found(query, locale)

    lines = [get_localized_text("products_found", locale, count=len(products),
                                source=source_phrase(source_tier, locale))]
    lines.extend(product_line(index, product, locale) for index, product in enumerate(products, 1))
    lines.append(get_localized_text("more_info_prompt", locale))

    return Result(
        success=True,
        message="\n".join(lines),
        data={
            "products": [product.to_payload() for product in products],
            "dataSource": source_tier.value if source_tier else None,
            "count": len(products),
        },
    )


def format_not_found(query, locale) -> Result:
    categories = get_category_suggestions(locale)
    if query:
        message = get_localized_text("no_products", locale, query=query)
    else:
        message = get_localized_text("no_products_generic", locale)
    message += " " + get_localized_text("suggest_categories", locale, categories=", ".join(categories))
    return Result(
        success=True,
        message=message,
        data={"products": [], "count": 0, "suggestedCategories": categories},
    )


def format_product_details(product, locale, source_tier) -> Result:
    lines = [get_localized_text("details_header", locale,
                                source=source_phrase(source_tier, locale), name=product.name)]
    if product.price is not None:
        lines.append(get_localized_text("details_price", locale, price=format_price(product.price)))
    stock = stock_phrase(product.in_stock, locale)
    if stock:
        lines.append(get_localized_text("details_availability", locale, stock=stock))
    if product.description:
        description = product.description[:DESCRIPTION_LENGTH].strip()
        lines.append(get_localized_text("details_description", locale, description=description))
    lines.append(get_localized_text("details_prompt", locale))

    return Result(
        success=True,
        message="\n".join(lines),
        data={
            "product": product.to_payload(),
            "dataSource": source_tier.value if source_tier else None,
        },
    )


def format_details_not_found(locale) -> Result:
    return Result(
        success=True,
        message=get_localized_text("details_not_found", locale),
        requires_input=True,
    )
