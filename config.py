import os
from dotenv import load_dotenv

# ---------------- Load environment variables ----------------
load_dotenv()

PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------------- Google Sheets ----------------
SPREADSHEET_ID = os.getenv("SPREADSHEET_ID")
GOOGLE_SHEETS_CREDENTIALS = os.getenv(
    "GOOGLE_SHEETS_CREDENTIALS",
    os.path.join(os.path.dirname(__file__), "service_account.json"),
)
INVENTORY_WORKSHEET = os.getenv("INVENTORY_WORKSHEET", "Inventory")
EVENTS_WORKSHEET = os.getenv("EVENTS_WORKSHEET", "Events")

# ---------------- Live data (Firecrawl) ----------------
FIRECRAWL_API_KEY = os.getenv("FIRECRAWL_API_KEY", "")
FIRECRAWL_API_URL = os.getenv("FIRECRAWL_API_URL", "https://api.firecrawl.dev/v1")

# ---------------- Store ----------------
STORE_BASE_URL = os.getenv("STORE_BASE_URL", "https://armenius.com.cy").rstrip("/")
STORE_DOMAIN = os.getenv("STORE_DOMAIN", "armenius.com.cy")
STORE_PHONE = os.getenv("STORE_PHONE", "77-111-104")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "€")

# ---------------- Timeouts (seconds) ----------------
LIVE_TIMEOUT_SECONDS = float(os.getenv("LIVE_TIMEOUT_SECONDS", "15"))
DIRECT_FETCH_TIMEOUT_SECONDS = float(os.getenv("DIRECT_FETCH_TIMEOUT_SECONDS", "10"))
CATALOG_TIMEOUT_SECONDS = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "5"))
# Overall budget for one live or direct-fetch tier, all of its calls included
TIER_DEADLINE_SECONDS = float(os.getenv("TIER_DEADLINE_SECONDS", "15"))

# ---------------- Search ----------------
PRICE_CEILING = float(os.getenv("PRICE_CEILING", "10000"))
DEFAULT_MAX_RESULTS = int(os.getenv("DEFAULT_MAX_RESULTS", "5"))
MIN_RESULTS = 1
MAX_RESULTS = 10
