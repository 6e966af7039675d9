"""
Catalog-backed operations: stock checks and price quotes.

Both read the Google Sheets inventory through CatalogStore. Catalog failures
are not handled here; the registry answers them with the fallback message.
"""
import logging

from language import get_localized_text
from models import CheckInventoryParams, ProductPriceParams, Result
from response_formatter import format_price

logger = logging.getLogger(__name__)

# (minimum quantity, percent off), largest first
QUANTITY_DISCOUNTS = ((10, 10), (5, 5))
ALTERNATIVES_LIMIT = 3
PRICE_CHOICES_LIMIT = 3


def quantity_discount(quantity):
    """(threshold, percent) for the best discount the quantity qualifies for"""
    for threshold, percent in QUANTITY_DISCOUNTS:
        if quantity >= threshold:
            return threshold, percent
    return None, 0


def _price_text(record):
    return format_price(record.price) if record.price is not None else "-"


async def _alternatives(catalog, record_or_term, locale):
    if isinstance(record_or_term, str):
        term, exclude = record_or_term, []
    else:
        term, exclude = record_or_term.name, [record_or_term.name]
    alternatives = await catalog.similar_in_stock(term, ALTERNATIVES_LIMIT, exclude=exclude)
    if not alternatives:
        return [], ""
    items = ", ".join(f"{record.name} ({format_price(record.price)})" if record.price is not None
                      else record.name for record in alternatives)
    return alternatives, " " + get_localized_text("similar_items", locale, items=items)


async def _stock_answer(catalog, record, locale):
    if record.in_stock:
        message = get_localized_text("item_in_stock", locale, name=record.name,
                                     quantity=record.stock_quantity, price=_price_text(record))
        return Result(success=True, message=message,
                      data={"available": True, "product": record.to_payload()})

    alternatives, note = await _alternatives(catalog, record, locale)
    message = get_localized_text("item_out_of_stock", locale, name=record.name) + note
    return Result(
        success=True,
        message=message,
        data={
            "available": False,
            "product": record.to_payload(),
            "alternatives": [alternative.to_payload() for alternative in alternatives],
        },
    )


async def check_inventory(catalog, params: CheckInventoryParams, context) -> Result:
    locale = context.language
    if not params.product_name and not params.product_sku:
        return Result(success=True, requires_input=True,
                      message=get_localized_text("ask_inventory_product", locale))

    if params.product_sku:
        record = await catalog.get_by_sku_or_name(params.product_sku)
        if record is not None:
            return await _stock_answer(catalog, record, locale)
        logger.info("SKU %s not in inventory", params.product_sku)

    query = params.product_name or params.product_sku
    if params.product_name:
        record = await catalog.get_by_sku_or_name(params.product_name)
        if record is not None:
            return await _stock_answer(catalog, record, locale)

    filters = {"category": params.category} if params.category else None
    matches = await catalog.search_by_term(query, 5, filters)

    if not matches:
        alternatives, note = await _alternatives(catalog, query, locale)
        return Result(
            success=True,
            message=get_localized_text("item_not_in_inventory", locale, query=query) + note,
            data={
                "available": False,
                "products": [],
                "alternatives": [alternative.to_payload() for alternative in alternatives],
            },
        )

    if len(matches) == 1:
        return await _stock_answer(catalog, matches[0], locale)

    lines = [get_localized_text("multiple_matches", locale, count=len(matches), query=query)]
    for index, record in enumerate(matches, 1):
        stock = get_localized_text("units_in_stock", locale, quantity=record.stock_quantity)
        lines.append(f"{index}. {record.name} ({stock})")
    return Result(
        success=True,
        message="\n".join(lines),
        data={
            "available": any(record.in_stock for record in matches),
            "products": [record.to_payload() for record in matches],
            "count": len(matches),
        },
    )


async def get_product_price(catalog, params: ProductPriceParams, context) -> Result:
    locale = context.language
    identifier = params.product_identifier
    if not identifier:
        return Result(success=True, requires_input=True,
                      message=get_localized_text("ask_price_product", locale))

    record = await catalog.get_by_sku_or_name(identifier)
    if record is None:
        matches = await catalog.search_by_term(identifier, PRICE_CHOICES_LIMIT)
        if len(matches) > 1:
            lines = [get_localized_text("price_multiple", locale)]
            for index, match in enumerate(matches, 1):
                lines.append(f"{index}. {match.name} – {_price_text(match)}")
            return Result(
                success=True,
                message="\n".join(lines),
                requires_input=True,
                data={"products": [match.to_payload() for match in matches], "count": len(matches)},
            )
        record = matches[0] if matches else None

    if record is None or record.price is None:
        return Result(success=True, requires_input=True,
                      message=get_localized_text("price_not_found", locale, query=identifier))

    quantity = params.quantity
    threshold, percent = quantity_discount(quantity)
    unit_price = round(record.price * (100 - percent) / 100, 2)
    total = round(unit_price * quantity, 2)
    discount = get_localized_text("discount_note", locale, percent=percent, threshold=threshold) if percent else ""

    message = get_localized_text(
        "price_quote", locale,
        name=record.name,
        unit_price=format_price(unit_price),
        discount=discount,
        quantity=quantity,
        total=format_price(total),
        stock=record.stock_quantity,
    )
    return Result(
        success=True,
        message=message,
        data={
            "product": record.to_payload(),
            "basePrice": record.price,
            "unitPrice": unit_price,
            "discountPercent": percent,
            "quantity": quantity,
            "totalPrice": total,
        },
    )
