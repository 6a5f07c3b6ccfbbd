import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from . import seed, settings
from .repositories import InMemoryPantryStore
from .schemas import Category, CheckoutRecord, InventoryItem, Order, Transaction

logger = logging.getLogger(__name__)

# collection -> (store attribute, storage key, record model)
_COLLECTIONS = {
    "inventory": ("_items", settings.INVENTORY_KEY, InventoryItem),
    "transactions": ("_transactions", settings.TRANSACTIONS_KEY, Transaction),
    "checkouts": ("_checkouts", settings.STUDENT_CHECKOUTS_KEY, CheckoutRecord),
    "orders": ("_orders", settings.ORDERS_KEY, Order),
    "categories": ("_categories", settings.CATEGORIES_KEY, Category),
}


class JsonPantryStore(InMemoryPantryStore):
    """
    Keeps each collection in DATA_DIR/<key>.json and rewrites the file after
    every change. Files are plain JSON arrays using the camelCase field names.
    """

    def __init__(self, data_dir: Optional[Path] = None, seed_sample_data: Optional[bool] = None):
        super().__init__()
        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if seed_sample_data is None:
            seed_sample_data = settings.SEED_SAMPLE_DATA

        for name, (attr, key, model) in _COLLECTIONS.items():
            path = self._path(key)
            if path.exists():
                setattr(self, attr, self._load(path, model))
            elif seed_sample_data and name in ("inventory", "categories"):
                records = seed.sample_inventory() if name == "inventory" else list(seed.DEFAULT_CATEGORIES)
                setattr(self, attr, records)
                self._changed(name)
                logger.info(f"Seeded {len(records)} {name} records into {path.name}")

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _load(self, path: Path, model: type[BaseModel]) -> list:
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            return TypeAdapter(list[model]).validate_python(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"❌ Could not load {path.name}: {e}")
            raise

    def _changed(self, key: str) -> None:
        attr, storage_key, _ = _COLLECTIONS[key]
        records = getattr(self, attr)
        path = self._path(storage_key)
        with open(path, "w", encoding="utf-8") as f:
            json_data = [record.model_dump(mode="json", by_alias=True) for record in records]
            json.dump(json_data, f, indent=2, default=str)
