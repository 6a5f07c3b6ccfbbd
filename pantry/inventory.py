import logging
from typing import Optional

from . import settings
from .clock import Clock, SystemClock
from .errors import PantryError
from .repositories import CategoryRepository, InventoryRepository, TransactionRepository
from .schemas import Category, InventoryItem, Transaction, TransactionType
from .seed import DEFAULT_CATEGORY_IDS
from .utils import format_quantity_with_unit, new_id, slugify_category

logger = logging.getLogger(__name__)


class InventoryManager:
    """
    Staff tools for stock and categories.

    Stock only ever goes up here; every increase is written to the
    transaction log as an "in" entry. Hand-outs go through order fulfillment.
    """

    def __init__(
        self,
        inventory: InventoryRepository,
        transactions: TransactionRepository,
        categories: CategoryRepository,
        clock: Optional[Clock] = None,
    ):
        self.inventory = inventory
        self.transactions = transactions
        self.categories = categories
        self.clock = clock or SystemClock()

    def _record_in(self, item: InventoryItem, quantity: float, user: str) -> None:
        self.transactions.append_transaction(
            Transaction(
                id=new_id("txn"),
                type=TransactionType.IN,
                item_id=item.id,
                item_name=item.name,
                quantity=quantity,
                user=user,
                timestamp=self.clock.now(),
                unit=item.unit,
            )
        )

    def _require_item(self, item_id: str) -> InventoryItem:
        item = self.inventory.get_item(item_id)
        if item is None:
            raise PantryError(f"Item {item_id} not found", code="item_not_found")
        return item

    # -------------------- Items --------------------

    def add_item(self, item: InventoryItem, user: str = settings.DEFAULT_STAFF_USER) -> InventoryItem:
        if not item.name.strip():
            raise PantryError("Please enter a valid item name", code="invalid_name")
        if self.inventory.get_item(item.id) is not None:
            raise PantryError(f"An item with id {item.id} already exists", code="duplicate_item")
        if item.barcode and self.find_by_barcode(item.barcode) is not None:
            raise PantryError(f"Barcode {item.barcode} is already assigned", code="duplicate_barcode")

        self.inventory.add_item(item)
        if item.quantity > 0:
            self._record_in(item, item.quantity, user)
        logger.info(f"Added {item.name} ({format_quantity_with_unit(item.quantity, item.unit)})")
        return item

    def restock(
        self, item_id: str, quantity: float, user: str = settings.DEFAULT_STAFF_USER
    ) -> InventoryItem:
        if quantity <= 0:
            raise PantryError("Please enter a valid quantity", code="invalid_quantity")
        item = self._require_item(item_id)

        updated = item.model_copy(update={"quantity": item.quantity + quantity})
        self.inventory.set_item_quantity(item_id, updated.quantity)
        self._record_in(item, quantity, user)
        logger.info(
            f"Restocked {item.name}: +{format_quantity_with_unit(quantity, item.unit)} "
            f"(now {format_quantity_with_unit(updated.quantity, item.unit)})"
        )
        return updated

    def update_item(self, item: InventoryItem, user: str = settings.DEFAULT_STAFF_USER) -> InventoryItem:
        """
        Replaces an item's details. A higher quantity is logged as a restock;
        a lower one is refused.
        """
        current = self._require_item(item.id)
        added = item.quantity - current.quantity
        if added < 0:
            raise PantryError(
                f"Cannot lower stock of {current.name} outside of order fulfillment",
                code="invalid_quantity",
            )

        self.inventory.replace_item(item)
        if added > 0:
            self._record_in(item, added, user)
        logger.info(f"Updated {item.name}")
        return item

    def find_by_barcode(self, barcode: str) -> Optional[InventoryItem]:
        barcode = barcode.strip()
        if not barcode:
            return None
        return next((i for i in self.inventory.get_all_items() if i.barcode == barcode), None)

    def search_items(self, query: str = "", category: Optional[str] = None) -> list[InventoryItem]:
        """Case-insensitive name search, optionally limited to one category, sorted by name."""
        needle = query.strip().lower()
        matches = [
            item
            for item in self.inventory.get_all_items()
            if needle in item.name.lower() and (category is None or item.category == category)
        ]
        return sorted(matches, key=lambda i: i.name.lower())

    def low_stock_items(self, threshold: float = settings.LOW_STOCK_THRESHOLD) -> list[InventoryItem]:
        return [item for item in self.inventory.get_all_items() if item.quantity < threshold]

    # -------------------- Categories --------------------

    def list_categories(self) -> list[Category]:
        return self.categories.get_categories()

    def _check_name(self, name: str, existing: list[Category], skip_id: Optional[str] = None) -> str:
        name = name.strip()
        if not name:
            raise PantryError("Category name is required", code="invalid_name")
        if any(c.id != skip_id and c.name.lower() == name.lower() for c in existing):
            raise PantryError("A category with this name already exists", code="duplicate_category")
        return name

    def add_category(self, name: str, description: str = "") -> Category:
        existing = self.categories.get_categories()
        name = self._check_name(name, existing)
        category = Category(id=slugify_category(name), name=name, description=description)
        if any(c.id == category.id for c in existing):
            raise PantryError("A category with this name already exists", code="duplicate_category")

        self.categories.save_categories([*existing, category])
        logger.info(f"Category added: {category.id}")
        return category

    def update_category(self, category: Category) -> Category:
        existing = self.categories.get_categories()
        if not any(c.id == category.id for c in existing):
            raise PantryError(f"Category {category.id} not found", code="category_not_found")
        name = self._check_name(category.name, existing, skip_id=category.id)
        category = category.model_copy(update={"name": name})

        self.categories.save_categories([category if c.id == category.id else c for c in existing])
        logger.info(f"Category updated: {category.id}")
        return category

    def delete_category(self, category_id: str) -> None:
        if category_id in DEFAULT_CATEGORY_IDS:
            raise PantryError("Cannot delete default categories", code="protected_category")
        existing = self.categories.get_categories()
        remaining = [c for c in existing if c.id != category_id]
        if len(remaining) == len(existing):
            raise PantryError(f"Category {category_id} not found", code="category_not_found")

        self.categories.save_categories(remaining)
        logger.info(f"Category deleted: {category_id}")
