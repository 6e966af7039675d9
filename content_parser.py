"""
Heuristic product extraction from fetched web content.

Two paths: HTML (search result pages fetched directly) and markdown
(structured text returned by the live data adapter). Extraction is
best-effort. On the HTML path titles and prices are collected independently
and paired by position, so the Nth title gets the Nth price; on pages where
some products have no visible price the pairing drifts. That imprecision is
accepted: results are ranked and read back to the caller as approximate.
"""
import html
import logging
import re

from config import PRICE_CEILING
from models import NormalizedProduct, ProductSource

logger = logging.getLogger(__name__)

# Ends on a digit so trailing sentence punctuation is not captured
NUMBER = r"\d(?:[\d.,]*\d)?"
PRICE_PATTERN = re.compile(
    r"[€$£]\s*(?P<before>" + NUMBER + r")"
    r"|(?P<after>" + NUMBER + r")\s*(?:€|EUR\b)",
    re.IGNORECASE,
)
LABELLED_PRICE = re.compile(r"(?:price|τιμή)\s*[:\-]?\s*(?P<label>" + NUMBER + r")", re.IGNORECASE)
CURRENCY_TOKEN = re.compile(r"[€$£]|\bEUR\b", re.IGNORECASE)

TITLE_PATTERNS = [
    re.compile(r'<h[1-6][^>]*class="[^"]*product[^"]*"[^>]*>([^<]+)<', re.IGNORECASE),
    re.compile(r'<div[^>]*class="[^"]*product[^"]*title[^"]*"[^>]*>([^<]+)<', re.IGNORECASE),
    re.compile(r'<a[^>]*class="[^"]*product[^"]*"[^>]*>([^<]+)<', re.IGNORECASE),
    re.compile(r'<span[^>]*class="[^"]*product[^"]*name[^"]*"[^>]*>([^<]+)<', re.IGNORECASE),
]
DETAIL_TITLE_PATTERNS = [
    re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL),
]
MARKUP_TAG = re.compile(r"<[a-zA-Z][^>]*>")
ANY_TAG = re.compile(r"<[^>]+>")
SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
MARKDOWN_IMAGE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\(([^)\s]*)[^)]*\)")
MARKDOWN_HEADING = re.compile(r"^\s*#+\s+(.+)$", re.MULTILINE)

OUT_OF_STOCK_PHRASES = ("out of stock", "sold out", "unavailable", "not available",
                        "εξαντλημένο", "εξαντλήθηκε", "μη διαθέσιμο", "εκτός αποθέματος")
IN_STOCK_PHRASES = ("in stock", "available", "διαθέσιμο", "σε απόθεμα")
STOCK_KEYWORDS = ("stock", "available", "availability", "price",
                  "απόθεμα", "διαθέσιμ", "εξαντλ", "τιμή")

MIN_TITLE_LENGTH = 3
DESCRIPTION_LENGTH = 200
SPECIFICATION_LENGTH = 500


# ---------------- Prices ----------------

def parse_price(token):
    """Numeric value of a price token such as "1,699.99", "1.699,99" or "1699,99"."""
    if not token:
        return None
    token = token.strip().replace(" ", "")
    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif "," in token:
        tail = token.rpartition(",")[2]
        if len(tail) == 3:
            token = token.replace(",", "")
        else:
            token = token.replace(",", ".")
    elif token.count(".") > 1 or ("." in token and len(token.rpartition(".")[2]) == 3):
        # dots as thousands separators: 1.699 or 1.699.000
        token = token.replace(".", "")
    try:
        return float(token)
    except ValueError:
        return None


def price_in_bounds(price, ceiling=PRICE_CEILING):
    return price is not None and 0 < price < ceiling


def extract_prices(text, ceiling=PRICE_CEILING, limit=None):
    """Currency-adjacent prices in order of appearance, noise discarded."""
    prices = []
    for match in PRICE_PATTERN.finditer(text):
        price = parse_price(match.group("before") or match.group("after"))
        if price_in_bounds(price, ceiling):
            prices.append(price)
            if limit is not None and len(prices) >= limit:
                break
    return prices


def extract_first_price(text, ceiling=PRICE_CEILING):
    prices = extract_prices(text, ceiling, limit=1)
    if prices:
        return prices[0]
    labelled = LABELLED_PRICE.search(text)
    if labelled:
        price = parse_price(labelled.group("label"))
        if price_in_bounds(price, ceiling):
            return price
    return None


# ---------------- Text helpers ----------------

def detect_stock(text):
    """True / False for explicit availability phrases, None when unknown."""
    lowered = text.lower()
    if any(phrase in lowered for phrase in OUT_OF_STOCK_PHRASES):
        return False
    if any(phrase in lowered for phrase in IN_STOCK_PHRASES):
        return True
    return None


def calculate_relevance(text, query):
    """Share of query terms (3+ characters) that appear in the text, in [0, 1]."""
    terms = query.lower().split()
    if not terms:
        return 0.0
    lowered = text.lower()
    matched = sum(1 for term in terms if len(term) >= 3 and term in lowered)
    return matched / len(terms)


def strip_tags(markup):
    text = SCRIPT_STYLE.sub(" ", markup)
    text = ANY_TAG.sub(" ", text)
    return re.sub(r"\s+", " ", html.unescape(text)).strip()


def clean_markdown_line(line):
    line = MARKDOWN_IMAGE.sub("", line)
    line = MARKDOWN_LINK.sub(r"\1", line)
    line = re.sub(r"^\s*(?:[-*+]\s+|\d+\.\s+)", "", line)
    return re.sub(r"[#*_`]", "", line).strip()


def looks_like_html(content):
    return bool(MARKUP_TAG.search(content))


# ---------------- Search pages ----------------

def parse(raw_content, query, max_candidates, ceiling=PRICE_CEILING, source=None):
    """Products found in fetched content, unranked, at most max_candidates * 2."""
    if not raw_content or not raw_content.strip():
        return []
    if looks_like_html(raw_content):
        return parse_html(raw_content, query, max_candidates, ceiling,
                          source or ProductSource.SCRAPED_FALLBACK)
    return parse_markdown(raw_content, query, max_candidates, ceiling,
                          source or ProductSource.LIVE)


def parse_html(markup, query, max_candidates, ceiling=PRICE_CEILING,
               source=ProductSource.SCRAPED_FALLBACK):
    working_limit = max(1, max_candidates) * 2

    found_titles = []
    for pattern in TITLE_PATTERNS:
        for match in pattern.finditer(markup):
            if len(found_titles) >= working_limit:
                break
            title = re.sub(r"\s+", " ", html.unescape(match.group(1))).strip()
            if len(title) >= MIN_TITLE_LENGTH and title not in found_titles:
                found_titles.append(title)

    found_prices = extract_prices(markup, ceiling, limit=working_limit)
    logger.debug("HTML parse: %d titles, %d prices", len(found_titles), len(found_prices))

    products = []
    for index, title in enumerate(found_titles):
        products.append(NormalizedProduct(
            name=title,
            source=source,
            price=found_prices[index] if index < len(found_prices) else None,
            relevance=calculate_relevance(title, query),
        ))
    return products


def parse_markdown(markdown, query, max_candidates, ceiling=PRICE_CEILING,
                   source=ProductSource.LIVE):
    working_limit = max(1, max_candidates) * 2
    blocks = [block.strip() for block in re.split(r"\n\s*\n", markdown) if block.strip()]
    product_blocks = [
        block for block in blocks
        if CURRENCY_TOKEN.search(block) or any(word in block.lower() for word in STOCK_KEYWORDS)
    ]

    products = []
    for block in product_blocks[:working_limit]:
        lines = [line for line in block.split("\n") if line.strip()]
        name = clean_markdown_line(lines[0])
        if len(name) < MIN_TITLE_LENGTH:
            continue
        description = " ".join(clean_markdown_line(line) for line in lines[1:]).strip()
        link = MARKDOWN_LINK.search(lines[0])
        products.append(NormalizedProduct(
            name=name,
            source=source,
            price=extract_first_price(block, ceiling),
            in_stock=detect_stock(block),
            description=description or None,
            url=link.group(2) if link and link.group(2) else None,
            relevance=calculate_relevance(f"{name} {description}", query),
        ))
    return products


def parse_search_results(results, query, ceiling=PRICE_CEILING, domain=None):
    """Products from structured live search hits (title, url, description or markdown)."""
    products = []
    for result in results or []:
        title = (result.get("title") or "").strip()
        url = result.get("url") or ""
        content = result.get("markdown") or result.get("description") or result.get("content") or ""
        if not title or not content:
            continue
        if domain and domain not in url:
            continue
        products.append(NormalizedProduct(
            name=title,
            source=ProductSource.LIVE,
            price=extract_first_price(content, ceiling),
            in_stock=detect_stock(content),
            url=url or None,
            description=content[:DESCRIPTION_LENGTH].strip(),
            relevance=calculate_relevance(f"{title} {content}", query),
        ))
    return products


# ---------------- Product pages ----------------

def parse_product_details(content, url=None, ceiling=PRICE_CEILING, source=ProductSource.LIVE):
    """A single product from a product page, or None when no name can be found."""
    if not content or not content.strip():
        return None

    name = None
    if looks_like_html(content):
        for pattern in DETAIL_TITLE_PATTERNS:
            match = pattern.search(content)
            if match:
                name = strip_tags(match.group(1))
                if name:
                    break
        text = strip_tags(content)
    else:
        heading = MARKDOWN_HEADING.search(content)
        if heading:
            name = clean_markdown_line(heading.group(1))
        text = content

    if not name:
        return None

    specifications = None
    lowered = text.lower()
    for marker in ("specification", "features", "χαρακτηριστικά", "προδιαγραφές"):
        start = lowered.find(marker)
        if start != -1:
            specifications = text[start:start + SPECIFICATION_LENGTH].strip()
            break

    return NormalizedProduct(
        name=name,
        source=source,
        price=extract_first_price(text, ceiling),
        in_stock=detect_stock(text),
        url=url,
        specifications=specifications,
        relevance=1.0,
    )
