import logging
import sys

from pantry import settings
from pantry.logger import setup_logger
from pantry.pipelines.analytics import CategoryAnalyticsPipeline, ProductAnalyticsPipeline
from pantry.storage import JsonPantryStore


def run_reports(test_mode: bool = False) -> int:
    """Builds the product report and one report per category from the local store."""
    logger = setup_logger()
    logger.info("--- Starting Pantry Analytics Reports ---")
    logger.info(f"Data directory: {settings.DATA_DIR}")

    store = JsonPantryStore()

    products = ProductAnalyticsPipeline(store, store, test_mode=test_mode).run()
    if products is None:
        logger.error("❌ Product report could not be produced.")
        return 1

    categories_with_items = {item.category for item in store.get_all_items()}
    for category in store.get_categories():
        if category.id in categories_with_items:
            CategoryAnalyticsPipeline(category.id, store, store, test_mode=test_mode).run()

    low_stock = [p for p in products if p.current_stock < settings.LOW_STOCK_THRESHOLD]
    if low_stock:
        logger.warning(f"⚠️ Low stock: {', '.join(p.name for p in low_stock)}")

    logger.info("\n--- Process Finished Successfully ---")
    return 0


if __name__ == "__main__":
    logging.captureWarnings(True)
    sys.exit(run_reports(test_mode="--test" in sys.argv[1:]))
