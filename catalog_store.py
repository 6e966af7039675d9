import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials

from config import CATALOG_TIMEOUT_SECONDS, GOOGLE_SHEETS_CREDENTIALS, SPREADSHEET_ID
from errors import CatalogUnavailableError
from intelligent_search import IntelligentSearch
from language import normalize_search_term
from models import NormalizedProduct, ProductSource

logger = logging.getLogger(__name__)

SCOPES = ['https://spreadsheets.google.com/feeds', 'https://www.googleapis.com/auth/drive']
INVENTORY_COLUMNS = ["SKU", "Item Name", "Brand", "Category", "Quantity", "Price (EUR)",
                     "Description", "Specifications", "Tags", "URL"]


@dataclass
class ProductRecord:
    """A row of the Inventory worksheet."""
    name: str
    sku: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    stock_quantity: int = 0
    price: Optional[float] = None
    description: Optional[str] = None
    specifications: Optional[str] = None
    url: Optional[str] = None
    score: float = 0.0

    @property
    def in_stock(self):
        return self.stock_quantity > 0

    def to_normalized(self, relevance=None):
        return NormalizedProduct(
            name=self.name,
            source=ProductSource.CATALOG,
            price=self.price,
            in_stock=self.in_stock,
            sku=self.sku,
            relevance=self.score if relevance is None else relevance,
            description=self.description,
            url=self.url,
            category=self.category,
            stock_quantity=self.stock_quantity,
            specifications=self.specifications,
        )

    def to_payload(self):
        return {
            "name": self.name,
            "sku": self.sku,
            "price": self.price,
            "stock": self.stock_quantity,
            "category": self.category,
        }


def _to_int(value):
    try:
        return int(float(str(value).strip() or 0))
    except (TypeError, ValueError):
        return 0


def _to_price(value):
    text = str(value).replace("€", "").replace(",", "").strip()
    if not text:
        return None
    try:
        price = float(text)
    except ValueError:
        return None
    return price if price >= 0 else None


def record_from_row(row: Dict[str, Any]) -> Optional[ProductRecord]:
    """Ensure numeric values are properly converted; rows without a name are skipped"""
    name = str(row.get("Item Name", "") or "").strip()
    if not name:
        return None
    return ProductRecord(
        name=name,
        sku=str(row.get("SKU", "") or "").strip() or None,
        brand=str(row.get("Brand", "") or "").strip() or None,
        category=str(row.get("Category", "") or "").strip() or None,
        stock_quantity=_to_int(row.get("Quantity", 0)),
        price=_to_price(row.get("Price (EUR)", "")),
        description=str(row.get("Description", "") or "").strip() or None,
        specifications=str(row.get("Specifications", "") or "").strip() or None,
        url=str(row.get("URL", "") or "").strip() or None,
    )


def _category_matches(record_category, requested):
    if not requested:
        return True
    if not record_category:
        return False
    wanted = normalize_search_term(requested.replace("-", " "))
    have = normalize_search_term(record_category.replace("-", " "))
    return wanted in have or have in wanted


class CatalogStore:
    """Product lookups against the Inventory worksheet.

    Every call reads the sheet in a worker thread under a timeout. Any failure
    surfaces as CatalogUnavailableError: the catalog is the last tier, so
    errors here are never swallowed.
    """

    def __init__(self, worksheet, search_engine=None, timeout=CATALOG_TIMEOUT_SECONDS):
        self.worksheet = worksheet
        self.search_engine = search_engine or IntelligentSearch()
        self.timeout = timeout

    async def get_inventory(self) -> List[ProductRecord]:
        if self.worksheet is None:
            raise CatalogUnavailableError("Inventory worksheet is not configured")
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(self.worksheet.get_all_records), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise CatalogUnavailableError(f"Catalog query timed out after {self.timeout}s") from e
        except Exception as e:
            raise CatalogUnavailableError(f"Catalog query failed: {e}") from e

        records = [record for record in (record_from_row(row) for row in rows) if record]
        logger.debug("Loaded %d inventory records", len(records))
        return records

    async def search_by_term(self, term, limit=5, filters=None) -> List[ProductRecord]:
        """Text search ranked by TF-IDF similarity, best first"""
        inventory = await self.get_inventory()
        category = (filters or {}).get("category")
        candidates = [record for record in inventory if _category_matches(record.category, category)]
        if not candidates:
            return []

        query = normalize_search_term(term)
        if not query:
            return []
        rows = [self._as_row(record) for record in candidates]
        by_row = {id(row): record for row, record in zip(rows, candidates)}
        ranked = self.search_engine.search_products(query, rows, max_results=limit)
        results = []
        for row, score in ranked:
            record = by_row[id(row)]
            record.score = min(1.0, score)
            results.append(record)

        # If no similarity hits, try matching individual words
        if not results:
            query_words = [word for word in query.split() if len(word) > 2]
            for record in candidates:
                text = normalize_search_term(" ".join(filter(None, [record.name, record.brand, record.sku, record.description])))
                matched = sum(1 for word in query_words if word in text)
                if matched:
                    record.score = 0.5 * matched / len(query_words)
                    results.append(record)
            results.sort(key=lambda record: -record.score)
            results = results[:limit]
        return results

    async def get_by_sku_or_name(self, identifier) -> Optional[ProductRecord]:
        """Exact (case-insensitive) SKU match first, then exact name match"""
        inventory = await self.get_inventory()
        wanted = identifier.strip().lower()
        for record in inventory:
            if record.sku and record.sku.lower() == wanted:
                record.score = 1.0
                return record
        for record in inventory:
            if record.name.lower() == wanted:
                record.score = 1.0
                return record
        return None

    async def popular_in_stock(self, limit=3, exclude=None) -> List[ProductRecord]:
        """In-stock products with the most units first"""
        inventory = await self.get_inventory()
        excluded = {name.lower() for name in (exclude or [])}
        in_stock = [record for record in inventory
                    if record.in_stock and record.name.lower() not in excluded]
        in_stock.sort(key=lambda record: -record.stock_quantity)
        return in_stock[:limit]

    async def similar_in_stock(self, term, limit=3, exclude=None) -> List[ProductRecord]:
        """Alternatives for a product: related in-stock items, else the best sellers"""
        excluded = {name.lower() for name in (exclude or [])}
        related = [record for record in await self.search_by_term(term, limit + 5)
                   if record.in_stock and record.name.lower() not in excluded]
        if related:
            return related[:limit]
        return await self.popular_in_stock(limit, exclude=exclude)

    @staticmethod
    def _as_row(record):
        return {
            "Item Name": record.name,
            "Brand": record.brand or "",
            "Category": record.category or "",
            "Description": record.description or "",
            "SKU": record.sku or "",
        }


# ---------------- Google Sheets setup ----------------

def open_spreadsheet(credentials_path=GOOGLE_SHEETS_CREDENTIALS, spreadsheet_id=SPREADSHEET_ID):
    """Authorize with the service account and open the store spreadsheet"""
    if not spreadsheet_id:
        raise ValueError("SPREADSHEET_ID environment variable not set.")
    with open(credentials_path, "r") as f:
        credentials_info = json.load(f)
    creds = Credentials.from_service_account_info(credentials_info, scopes=SCOPES)
    client = gspread.authorize(creds)
    sheet = client.open_by_key(spreadsheet_id)
    logger.info("Opened spreadsheet: %s", sheet.title)
    return sheet


def get_or_create_worksheet(sheet, title, headers):
    try:
        return sheet.worksheet(title)
    except gspread.exceptions.WorksheetNotFound:
        logger.info("Creating new %s worksheet", title)
        worksheet = sheet.add_worksheet(title=title, rows=100, cols=len(headers))
        worksheet.append_row(headers)
        return worksheet
