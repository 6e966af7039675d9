import asyncio

import pytest

from catalog_store import CatalogStore
from errors import DirectFetchError, LiveDataUnavailableError
from live_data import LiveCapability, LiveResponse
from telemetry import MemorySink, Telemetry

INVENTORY_ROWS = [
    {"SKU": "RTX4090-ASUS", "Item Name": "ASUS ROG Strix RTX 4090 Gaming", "Brand": "ASUS",
     "Category": "Graphics Cards", "Quantity": 3, "Price (EUR)": 1699.99,
     "Description": "Flagship graphics card for 4K gaming", "Specifications": "24GB GDDR6X",
     "Tags": "gpu nvidia", "URL": ""},
    {"SKU": "RTX3060-MSI", "Item Name": "MSI RTX 3060 Ventus", "Brand": "MSI",
     "Category": "Graphics Cards", "Quantity": 8, "Price (EUR)": 329.0,
     "Description": "Mainstream graphics card", "Specifications": "12GB GDDR6",
     "Tags": "gpu nvidia", "URL": ""},
    {"SKU": "SKU123", "Item Name": "AMD Ryzen 9 7950X", "Brand": "AMD",
     "Category": "Processors", "Quantity": 0, "Price (EUR)": 599.0,
     "Description": "16-core desktop processor", "Specifications": "",
     "Tags": "cpu", "URL": ""},
    {"SKU": "I7-14700K", "Item Name": "Intel Core i7-14700K", "Brand": "Intel",
     "Category": "Processors", "Quantity": 12, "Price (EUR)": 429.0,
     "Description": "20-core desktop processor", "Specifications": "",
     "Tags": "cpu", "URL": ""},
    {"SKU": "SSD-990", "Item Name": "Samsung 990 Pro 2TB", "Brand": "Samsung",
     "Category": "Storage", "Quantity": 20, "Price (EUR)": 179.5,
     "Description": "NVMe SSD drive", "Specifications": "",
     "Tags": "ssd nvme", "URL": ""},
]


class FakeWorksheet:
    """Stands in for a gspread worksheet"""

    def __init__(self, rows=None, error=None):
        self.rows = [dict(row) for row in (rows if rows is not None else INVENTORY_ROWS)]
        self.error = error
        self.reads = 0
        self.appended = []

    def get_all_records(self):
        self.reads += 1
        if self.error:
            raise self.error
        return [dict(row) for row in self.rows]

    def append_row(self, row):
        self.appended.append(row)


class FakeDirect:
    """Direct fetcher returning fixed HTML, or raising when html is None"""

    def __init__(self, html=None):
        self.html = html
        self.calls = 0

    async def fetch_search_page(self, query, category=None):
        self.calls += 1
        if self.html is None:
            raise DirectFetchError("HTTP 503 fetching search page")
        return self.html

    async def fetch(self, url):
        return await self.fetch_search_page(url)


class FakeLiveAdapter:
    def __init__(self, results=None, content=None, error=None, delay=0):
        self.results = results or []
        self.delay = delay
        self.content = content
        self.error = error
        self.searches = 0
        self.fetches = 0

    async def search(self, query, filters=None, limit=5):
        self.searches += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return LiveResponse(success=True, results=self.results)

    async def fetch(self, url, hints=None):
        self.fetches += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return LiveResponse(success=bool(self.content), content=self.content)


@pytest.fixture
def worksheet():
    return FakeWorksheet()


@pytest.fixture
def catalog(worksheet):
    return CatalogStore(worksheet)


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def telemetry(sink):
    return Telemetry([sink], background=False)


@pytest.fixture
def live_absent():
    return LiveCapability.absent("FIRECRAWL_API_KEY not set")


@pytest.fixture
def failing_live():
    adapter = FakeLiveAdapter(error=LiveDataUnavailableError("Firecrawl /search timed out"))
    return LiveCapability.present(adapter)
