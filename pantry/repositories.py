"""
Storage capabilities the pantry core is written against.

The eligibility and order logic never touch a concrete store; they are
handed objects satisfying these protocols. `InMemoryPantryStore` satisfies
all of them at once and is what the tests use. `storage.JsonPantryStore`
adds file persistence on top of it.
"""

from typing import Iterable, Optional, Protocol, Sequence

from .schemas import Category, CheckoutRecord, InventoryItem, Order, Transaction


class InventoryRepository(Protocol):
    def get_item(self, item_id: str) -> Optional[InventoryItem]: ...

    def get_all_items(self) -> list[InventoryItem]: ...

    def set_item_quantity(self, item_id: str, new_quantity: float) -> None: ...

    def add_item(self, item: InventoryItem) -> None: ...

    def replace_item(self, item: InventoryItem) -> None: ...


class LedgerRepository(Protocol):
    def get_checkouts_for(self, student_id: str, item_id: str) -> list[CheckoutRecord]: ...

    def get_all_checkouts(self) -> list[CheckoutRecord]: ...

    def append_checkout(self, record: CheckoutRecord) -> None: ...


class OrderRepository(Protocol):
    def get_order(self, order_id: str) -> Optional[Order]: ...

    def get_orders_for(self, student_id: str) -> list[Order]: ...

    def get_all_orders(self) -> list[Order]: ...

    def append_order(self, order: Order) -> None: ...

    def replace_order(self, updated_order: Order) -> None: ...


class TransactionRepository(Protocol):
    def get_transactions(self) -> list[Transaction]: ...

    def append_transaction(self, entry: Transaction) -> None: ...


class CategoryRepository(Protocol):
    def get_categories(self) -> list[Category]: ...

    def save_categories(self, categories: Sequence[Category]) -> None: ...


class InMemoryPantryStore:
    """
    Holds every pantry collection in plain lists.
    Reads hand out copies so callers can never mutate stored state by accident.
    """

    def __init__(
        self,
        items: Iterable[InventoryItem] = (),
        orders: Iterable[Order] = (),
        checkouts: Iterable[CheckoutRecord] = (),
        transactions: Iterable[Transaction] = (),
        categories: Iterable[Category] = (),
    ):
        self._items: list[InventoryItem] = [i.model_copy() for i in items]
        self._orders: list[Order] = [o.model_copy(deep=True) for o in orders]
        self._checkouts: list[CheckoutRecord] = list(checkouts)
        self._transactions: list[Transaction] = list(transactions)
        self._categories: list[Category] = list(categories)

    # Hook for subclasses that persist; called after every write.
    def _changed(self, key: str) -> None:
        pass

    # --- Inventory ---

    def _item_index(self, item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return -1

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        index = self._item_index(item_id)
        return self._items[index].model_copy() if index != -1 else None

    def get_all_items(self) -> list[InventoryItem]:
        return [item.model_copy() for item in self._items]

    def set_item_quantity(self, item_id: str, new_quantity: float) -> None:
        index = self._item_index(item_id)
        if index == -1:
            raise KeyError(item_id)
        self._items[index] = self._items[index].model_copy(update={"quantity": new_quantity})
        self._changed("inventory")

    def add_item(self, item: InventoryItem) -> None:
        self._items.append(item.model_copy())
        self._changed("inventory")

    def replace_item(self, item: InventoryItem) -> None:
        index = self._item_index(item.id)
        if index == -1:
            raise KeyError(item.id)
        self._items[index] = item.model_copy()
        self._changed("inventory")

    # --- Ledger ---

    def get_checkouts_for(self, student_id: str, item_id: str) -> list[CheckoutRecord]:
        return [
            c for c in self._checkouts if c.student_id == student_id and c.item_id == item_id
        ]

    def get_all_checkouts(self) -> list[CheckoutRecord]:
        return list(self._checkouts)

    def append_checkout(self, record: CheckoutRecord) -> None:
        self._checkouts.append(record)
        self._changed("checkouts")

    # --- Orders ---

    def get_order(self, order_id: str) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order.model_copy(deep=True)
        return None

    def get_orders_for(self, student_id: str) -> list[Order]:
        return [o.model_copy(deep=True) for o in self._orders if o.student_id == student_id]

    def get_all_orders(self) -> list[Order]:
        return [o.model_copy(deep=True) for o in self._orders]

    def append_order(self, order: Order) -> None:
        self._orders.append(order.model_copy(deep=True))
        self._changed("orders")

    def replace_order(self, updated_order: Order) -> None:
        for index, order in enumerate(self._orders):
            if order.id == updated_order.id:
                self._orders[index] = updated_order.model_copy(deep=True)
                self._changed("orders")
                return
        raise KeyError(updated_order.id)

    # --- Transactions ---

    def get_transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def append_transaction(self, entry: Transaction) -> None:
        self._transactions.append(entry)
        self._changed("transactions")

    # --- Categories ---

    def get_categories(self) -> list[Category]:
        return [c.model_copy() for c in self._categories]

    def save_categories(self, categories: Sequence[Category]) -> None:
        self._categories = [c.model_copy() for c in categories]
        self._changed("categories")
