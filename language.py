# language.py
import re

SUPPORTED_LANGUAGES = ("en", "el")
DEFAULT_LANGUAGE = "en"

GREEK_CHARS = re.compile("[\u0370-\u03FF\u1F00-\u1FFF]")

LANG = {
    # ---------------- Product lists ----------------
    "products_found": {
        "en": "I found {count} products {source}:",
        "el": "Βρήκα {count} προϊόντα {source}:"
    },
    "source_live": {
        "en": "from our live website",
        "el": "από την ιστοσελίδα μας"
    },
    "source_database": {
        "en": "from our database",
        "el": "από τη βάση δεδομένων μας"
    },
    "in_stock": {
        "en": "In Stock",
        "el": "Διαθέσιμο"
    },
    "out_of_stock": {
        "en": "Out of Stock",
        "el": "Εξαντλημένο"
    },
    "more_info_prompt": {
        "en": "Would you like more information about any of these products?",
        "el": "Θα θέλατε περισσότερες πληροφορίες για κάποιο από αυτά τα προϊόντα;"
    },
    "no_products": {
        "en": "I couldn't find any products matching \"{query}\". Could you try different search terms?",
        "el": "Δεν βρήκα προϊόντα που να ταιριάζουν με \"{query}\". Μπορείτε να δοκιμάσετε με διαφορετικούς όρους αναζήτησης;"
    },
    "no_products_generic": {
        "en": "I didn't find any products for that search.",
        "el": "Δεν βρήκα προϊόντα για αυτή την αναζήτηση."
    },
    "suggest_categories": {
        "en": "You could ask me about {categories}.",
        "el": "Μπορείτε να με ρωτήσετε για {categories}."
    },
    "ask_search_query": {
        "en": "What product would you like me to look up?",
        "el": "Ποιο προϊόν θα θέλατε να αναζητήσω;"
    },

    # ---------------- Product details ----------------
    "details_header": {
        "en": "Product information {source} for {name}:",
        "el": "Πληροφορίες {source} για το {name}:"
    },
    "details_price": {
        "en": "Price: {price}",
        "el": "Τιμή: {price}"
    },
    "details_availability": {
        "en": "Availability: {stock}",
        "el": "Διαθεσιμότητα: {stock}"
    },
    "details_description": {
        "en": "Description: {description}",
        "el": "Περιγραφή: {description}"
    },
    "details_prompt": {
        "en": "Would you like to book an appointment for more information or to make a purchase?",
        "el": "Θα θέλατε να κλείσετε ραντεβού για περαιτέρω πληροφορίες ή αγορά;"
    },
    "details_not_found": {
        "en": "I couldn't find the details for that product. Could you provide more information?",
        "el": "Δεν μπόρεσα να βρω τις λεπτομέρειες για αυτό το προϊόν. Μπορείτε να δώσετε περισσότερες πληροφορίες;"
    },
    "ask_details_identifier": {
        "en": "Which product would you like details for? A product code or link helps me find it.",
        "el": "Για ποιο προϊόν θα θέλατε λεπτομέρειες; Ένας κωδικός προϊόντος με βοηθά να το βρω."
    },

    # ---------------- Inventory ----------------
    "ask_inventory_product": {
        "en": "I need a product name or SKU to check inventory. What product are you looking for?",
        "el": "Χρειάζομαι το όνομα ή τον κωδικό του προϊόντος για να ελέγξω το απόθεμα. Ποιο προϊόν ψάχνετε;"
    },
    "item_in_stock": {
        "en": "Yes! {name} is in stock. We have {quantity} units available at {price}. Would you like me to reserve one for you?",
        "el": "Ναι! {name} είναι διαθέσιμο. Έχουμε {quantity} μονάδες στη τιμή των {price}. Θα θέλατε να σας κρατήσω ένα;"
    },
    "item_out_of_stock": {
        "en": "Unfortunately {name} is currently out of stock. Would you like me to check similar products?",
        "el": "Δυστυχώς το {name} δεν είναι διαθέσιμο αυτή τη στιγμή. Θα θέλατε να δείτε παρόμοια προϊόντα;"
    },
    "item_not_in_inventory": {
        "en": "I couldn't find \"{query}\" in our inventory. Would you like me to check similar products we have in stock?",
        "el": "Δε μπόρεσα να βρω το \"{query}\" στο απόθεμά μας. Θα θέλατε να δείτε τα παρόμοια προϊόντα που έχουμε;"
    },
    "similar_items": {
        "en": "Similar items in stock: {items}.",
        "el": "Παρόμοια διαθέσιμα προϊόντα: {items}."
    },
    "multiple_matches": {
        "en": "I found {count} products matching \"{query}\". Which one interests you?",
        "el": "Βρήκα {count} προϊόντα που ταιριάζουν με \"{query}\". Ποιο σας ενδιαφέρει;"
    },
    "units_in_stock": {
        "en": "{quantity} in stock",
        "el": "{quantity} σε απόθεμα"
    },

    # ---------------- Pricing ----------------
    "ask_price_product": {
        "en": "I need a product name or SKU to check pricing. What product are you interested in?",
        "el": "Χρειάζομαι το όνομα ή τον κωδικό του προϊόντος για να ελέγξω την τιμή. Ποιο προϊόν σας ενδιαφέρει;"
    },
    "price_not_found": {
        "en": "I couldn't find \"{query}\" in our catalog. Can you provide more details?",
        "el": "Δε μπόρεσα να βρω το \"{query}\" στον κατάλογό μας. Μπορείτε να δώσετε περισσότερες λεπτομέρειες;"
    },
    "price_quote": {
        "en": "{name} costs {unit_price} each{discount}. For {quantity} units, the total would be {total}. We have {stock} in stock.",
        "el": "{name} κοστίζει {unit_price} το τεμάχιο{discount}. Για {quantity} τεμάχια, το συνολικό κόστος είναι {total}. Έχουμε {stock} σε απόθεμα."
    },
    "discount_note": {
        "en": " ({percent}% discount for {threshold}+ items)",
        "el": " ({percent}% έκπτωση για {threshold}+ τεμάχια)"
    },
    "price_multiple": {
        "en": "I found multiple products. Which one interests you?",
        "el": "Βρήκα πολλαπλά προϊόντα. Ποιο σας ενδιαφέρει;"
    },

    # ---------------- Store information ----------------
    "store_hours": {
        "en": "We are open Monday to Friday from 9am to 7pm and Saturday from 9am to 2pm. We are closed on Sunday.",
        "el": "Είμαστε ανοιχτά Δευτέρα με Παρασκευή 9π.μ. με 7μ.μ. και Σάββατο 9π.μ. με 2μ.μ. Την Κυριακή είμαστε κλειστά."
    },
    "store_location": {
        "en": "You can find us at 171 Makarios Avenue, Nicosia, Cyprus.",
        "el": "Θα μας βρείτε στη Λεωφόρο Μακαρίου 171, Λευκωσία, Κύπρος."
    },
    "store_contact": {
        "en": "You can call us at {phone} or visit {website}.",
        "el": "Μπορείτε να μας καλέσετε στο {phone} ή να επισκεφθείτε το {website}."
    },
    "store_services": {
        "en": "We sell computer hardware, build custom gaming PCs and workstations, and offer repairs, consultations and warranty service.",
        "el": "Πουλάμε εξαρτήματα υπολογιστών, κατασκευάζουμε gaming υπολογιστές και σταθμούς εργασίας, και προσφέρουμε επισκευές, συμβουλευτική και υπηρεσίες εγγύησης."
    },
    "store_general": {
        "en": "Armenius Store is Cyprus' computer hardware store.",
        "el": "Το Armenius Store είναι το κατάστημα εξαρτημάτων υπολογιστών της Κύπρου."
    },
    "anything_else": {
        "en": "Is there anything else I can help you with?",
        "el": "Μπορώ να σας βοηθήσω με κάτι άλλο;"
    },

    # ---------------- Generic ----------------
    "clarify_request": {
        "en": "I didn't catch all the details. Could you please repeat that?",
        "el": "Δεν κατάλαβα όλες τις λεπτομέρειες. Μπορείτε να το επαναλάβετε;"
    },
    "unknown_function": {
        "en": "Unknown function: {name}",
        "el": "Άγνωστη λειτουργία: {name}"
    }
}

# Category suggestions offered when a search finds nothing
CATEGORY_SUGGESTIONS = {
    "en": ["processors", "graphics cards", "memory", "SSD drives", "laptops"],
    "el": ["επεξεργαστές", "κάρτες γραφικών", "μνήμες", "δίσκοι SSD", "φορητοί υπολογιστές"]
}


def detect_language(text):
    """Greek when the text contains Greek characters, English otherwise."""
    if text and GREEK_CHARS.search(text):
        return "el"
    return DEFAULT_LANGUAGE


def normalize_language(lang_code):
    if not lang_code:
        return None
    lang_code = str(lang_code).strip().lower()[:2]
    return lang_code if lang_code in SUPPORTED_LANGUAGES else None


def resolve_language(explicit=None, text=None):
    """Caller-supplied language wins; detection only when none was given."""
    if explicit:
        return normalize_language(explicit) or DEFAULT_LANGUAGE
    if text:
        return detect_language(text)
    return DEFAULT_LANGUAGE


def get_localized_text(key, lang_code=None, **kwargs):
    """Get localized text with fallback to English"""
    lang_code = normalize_language(lang_code) or DEFAULT_LANGUAGE

    if key in LANG and lang_code in LANG[key]:
        text = LANG[key][lang_code]
    elif key in LANG and "en" in LANG[key]:
        text = LANG[key]["en"]
    else:
        raise KeyError(f"Missing translation for {key}")

    try:
        return text.format(**kwargs)
    except KeyError:
        return text


def get_category_suggestions(lang_code=None, limit=4):
    lang_code = normalize_language(lang_code) or DEFAULT_LANGUAGE
    limit = max(3, min(5, limit))
    return list(CATEGORY_SUGGESTIONS[lang_code][:limit])


def normalize_search_term(term):
    """Lower-case, strip punctuation and collapse whitespace."""
    term = re.sub(r"[^\w\s]", " ", term.lower())
    return re.sub(r"\s+", " ", term).strip()
