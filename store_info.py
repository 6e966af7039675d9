from config import STORE_BASE_URL, STORE_PHONE
from language import get_localized_text
from models import Result, StoreInfoParams

STORE_DETAILS = {
    "name": "Armenius Store",
    "address": "171 Makarios Avenue, Nicosia, Cyprus",
    "phone": STORE_PHONE,
    "website": STORE_BASE_URL,
    "hours": {
        "monday-friday": "09:00-19:00",
        "saturday": "09:00-14:00",
        "sunday": "closed",
    },
}

GENERAL_SECTIONS = ("store_general", "store_hours", "store_location", "store_contact")


def _section(key, locale):
    return get_localized_text(key, locale, phone=STORE_DETAILS["phone"], website=STORE_DETAILS["website"])


async def get_store_info(params: StoreInfoParams, context) -> Result:
    """Static store information: hours, location, contact, services or all of it"""
    locale = context.language
    if params.info_type == "general":
        parts = [_section(key, locale) for key in GENERAL_SECTIONS]
    else:
        parts = [_section(f"store_{params.info_type}", locale)]
    parts.append(get_localized_text("anything_else", locale))

    return Result(
        success=True,
        message=" ".join(parts),
        data={"infoType": params.info_type, "store": STORE_DETAILS},
    )
