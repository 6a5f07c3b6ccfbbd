import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- Path Configuration ---
DATA_DIR = BASE_DIR / os.getenv("DATA_DIR", "data")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Storage Keys ---
# One JSON file per collection, named after the key.
INVENTORY_KEY = "inventory_items"
TRANSACTIONS_KEY = "inventory_transactions"
STUDENT_CHECKOUTS_KEY = "student_checkouts"
ORDERS_KEY = "student_orders"
CATEGORIES_KEY = "inventory_categories"

# --- Business Rules ---
# Minimum gap between two order submissions by the same student.
RECENT_ORDER_WINDOW_MINUTES = int(os.getenv("RECENT_ORDER_WINDOW_MINUTES", "30"))
# Items below this quantity are flagged as low stock.
LOW_STOCK_THRESHOLD = float(os.getenv("LOW_STOCK_THRESHOLD", "10"))
DEFAULT_STAFF_USER = os.getenv("DEFAULT_STAFF_USER", "admin")
SEED_SAMPLE_DATA = _env_bool("SEED_SAMPLE_DATA", True)

# --- Reports ---
PRODUCT_REPORT_BASE = os.getenv("PRODUCT_REPORT_BASE", "product_analytics")
CATEGORY_REPORT_BASE = os.getenv("CATEGORY_REPORT_BASE", "category_analytics")
SAVE_JSON_OUTPUT = _env_bool("SAVE_JSON_OUTPUT", True)

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
