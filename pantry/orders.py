"""
Order lifecycle: pending -> fulfilled | cancelled.

Creating an order has no effect on stock. Stock only moves when staff
fulfill an order, and then for every line item or for none of them.
`fulfilled` and `cancelled` are terminal.

The module-level functions work on snapshots and return new records;
`OrderLifecycle` loads snapshots from the repositories, calls them and
persists the outcome while holding a lock, so that validation and commit
cannot interleave with another fulfillment.
"""

import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Optional, Sequence

from . import settings
from .clock import Clock, SystemClock
from .eligibility import EligibilityEngine, merge_cart_lines
from .errors import ErrorKind
from .repositories import (
    InventoryRepository,
    LedgerRepository,
    OrderRepository,
    TransactionRepository,
)
from .schemas import (
    CancelResult,
    CartLine,
    CheckoutRecord,
    FulfillmentResult,
    InventoryItem,
    Order,
    OrderLineItem,
    OrderResult,
    OrderStatus,
    Transaction,
    TransactionType,
)
from .utils import new_id

logger = logging.getLogger(__name__)

DEFAULT_RECENT_ORDER_WINDOW = timedelta(minutes=settings.RECENT_ORDER_WINDOW_MINUTES)


def _find_order(orders: Sequence[Order], order_id: str) -> Optional[Order]:
    return next((o for o in orders if o.id == order_id), None)


def _not_pending(order: Order) -> str:
    return f"Order {order.id} is already {order.status.value}"


def recent_order_time_remaining(
    student_id: str,
    orders: Sequence[Order],
    now: datetime,
    recent_order_window: timedelta = DEFAULT_RECENT_ORDER_WINDOW,
) -> Optional[int]:
    """
    Minutes (rounded up) until the student may submit again, or None if
    their latest order of any status is outside the window.
    """
    student_orders = [o for o in orders if o.student_id == student_id]
    if not student_orders:
        return None

    latest = max(student_orders, key=lambda o: o.created_at)
    elapsed = now - latest.created_at
    if elapsed < recent_order_window:
        return math.ceil((recent_order_window - elapsed).total_seconds() / 60)
    return None


def create_order(
    student_id: str,
    line_items: Sequence[OrderLineItem],
    orders: Sequence[Order],
    now: datetime,
    recent_order_window: timedelta = DEFAULT_RECENT_ORDER_WINDOW,
) -> OrderResult:
    """Builds a new pending order unless the student submitted one too recently."""
    if not student_id.strip() or not line_items:
        return OrderResult(
            success=False,
            error=ErrorKind.EMPTY_ORDER,
            message="An order needs a student ID and at least one item",
        )

    remaining = recent_order_time_remaining(student_id, orders, now, recent_order_window)
    if remaining is not None:
        return OrderResult(
            success=False,
            error=ErrorKind.RATE_LIMITED,
            message=(
                "You've already placed an order recently. "
                f"Please wait {remaining} minutes before placing another order."
            ),
            time_remaining=remaining,
        )

    order = Order(
        id=new_id("order"),
        student_id=student_id,
        items=[line.model_copy() for line in line_items],
        status=OrderStatus.PENDING,
        created_at=now,
        notified=False,
    )
    return OrderResult(success=True, order_id=order.id, order=order)


def fulfill_order(
    order_id: str,
    orders: Sequence[Order],
    inventory: Sequence[InventoryItem],
    now: datetime,
) -> FulfillmentResult:
    """
    Validates every line item against current stock and, only if all pass,
    returns the decremented inventory, the fulfilled order, and the ledger
    and transaction entries to append. Inputs are never modified.
    """
    order = _find_order(orders, order_id)
    if order is None:
        return FulfillmentResult(
            success=False, error=ErrorKind.ORDER_NOT_FOUND, message="Order not found"
        )
    if order.is_terminal:
        return FulfillmentResult(
            success=False, error=ErrorKind.ORDER_NOT_PENDING, message=_not_pending(order)
        )

    stock = {item.id: item for item in inventory}

    # Validate everything before touching anything.
    requested: dict[str, float] = {}
    for line in order.items:
        item = stock.get(line.item_id)
        if item is None:
            return FulfillmentResult(
                success=False,
                error=ErrorKind.ITEM_NOT_FOUND,
                message=f"{line.item_name} is no longer in inventory",
                item_id=line.item_id,
            )
        requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity
        if requested[line.item_id] > item.quantity:
            return FulfillmentResult(
                success=False,
                error=ErrorKind.INSUFFICIENT_STOCK,
                message=f"Not enough {line.item_name} in inventory",
                item_id=line.item_id,
            )

    # Commit
    for item_id, quantity in requested.items():
        item = stock[item_id]
        stock[item_id] = item.model_copy(update={"quantity": item.quantity - quantity})

    checkouts = []
    transactions = []
    for line in order.items:
        unit = stock[line.item_id].unit
        checkouts.append(
            CheckoutRecord(
                student_id=order.student_id,
                item_id=line.item_id,
                quantity=line.quantity,
                timestamp=now,
                unit=unit,
            )
        )
        transactions.append(
            Transaction(
                id=new_id("txn"),
                type=TransactionType.OUT,
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                user=order.student_id,
                timestamp=now,
                unit=unit,
            )
        )

    updated_order = order.model_copy(
        update={"status": OrderStatus.FULFILLED, "fulfilled_at": now, "notified": True},
        deep=True,
    )
    return FulfillmentResult(
        success=True,
        updated_order=updated_order,
        updated_inventory=[stock[item.id] for item in inventory],
        checkouts=checkouts,
        transactions=transactions,
    )


def cancel_order(order_id: str, orders: Sequence[Order]) -> CancelResult:
    order = _find_order(orders, order_id)
    if order is None:
        return CancelResult(success=False, error=ErrorKind.ORDER_NOT_FOUND, message="Order not found")
    if order.is_terminal:
        return CancelResult(
            success=False, error=ErrorKind.ORDER_NOT_PENDING, message=_not_pending(order)
        )

    updated_order = order.model_copy(update={"status": OrderStatus.CANCELLED}, deep=True)
    return CancelResult(success=True, updated_order=updated_order)


class OrderLifecycle:
    """
    Student submissions and staff fulfillment over injected repositories.

    All writes go through one lock. That makes the instance the single
    writer for its repositories; several processes sharing one store need a
    transaction in the store itself.
    """

    def __init__(
        self,
        inventory: InventoryRepository,
        ledger: LedgerRepository,
        orders: OrderRepository,
        transactions: TransactionRepository,
        clock: Optional[Clock] = None,
        recent_order_window: timedelta = DEFAULT_RECENT_ORDER_WINDOW,
    ):
        self.inventory = inventory
        self.ledger = ledger
        self.orders = orders
        self.transactions = transactions
        self.clock = clock or SystemClock()
        self.recent_order_window = recent_order_window
        self.eligibility = EligibilityEngine(inventory, ledger, self.clock)
        self._lock = threading.RLock()

    # -------------------- Student side --------------------

    def has_recent_order(self, student_id: str) -> tuple[bool, Optional[int]]:
        remaining = recent_order_time_remaining(
            student_id,
            self.orders.get_orders_for(student_id),
            self.clock.now(),
            self.recent_order_window,
        )
        return remaining is not None, remaining

    def create_order(self, student_id: str, line_items: Sequence[OrderLineItem]) -> OrderResult:
        with self._lock:
            result = create_order(
                student_id,
                line_items,
                self.orders.get_orders_for(student_id),
                self.clock.now(),
                self.recent_order_window,
            )
            if not result.success:
                logger.warning(f"Order from {student_id!r} rejected: {result.message}")
                return result

            self.orders.append_order(result.order)

        logger.info(
            f"Order {result.order_id} created for {student_id} ({len(line_items)} line items)"
        )
        return result

    def submit_cart(self, student_id: str, lines: Sequence[CartLine]) -> OrderResult:
        """
        Pre-validates the cart against stock, limits and cooldowns, then places
        the order. Lines naming the same item are checked and ordered as one
        line. Any failing item rejects the whole cart.
        """
        if not student_id.strip():
            return OrderResult(
                success=False, error=ErrorKind.EMPTY_ORDER, message="Please enter your student ID"
            )
        if not lines:
            return OrderResult(
                success=False, error=ErrorKind.EMPTY_ORDER, message="Your cart is empty"
            )

        failures = self.eligibility.check_cart_results(student_id, lines)
        if failures:
            first = next(iter(failures.values()))
            return OrderResult(
                success=False,
                error=first.error,
                message="Some items in your cart cannot be requested",
                item_errors={
                    item_id: result.reason or "Cannot take this item"
                    for item_id, result in failures.items()
                },
            )

        line_items = []
        for line in merge_cart_lines(lines):
            item = self.inventory.get_item(line.item_id)
            line_items.append(
                OrderLineItem(
                    item_id=item.id,
                    item_name=item.name,
                    quantity=line.quantity,
                    category=item.category,
                    unit=item.unit,
                )
            )
        return self.create_order(student_id, line_items)

    def orders_for_student(self, student_id: str) -> list[Order]:
        """Newest first."""
        return sorted(
            self.orders.get_orders_for(student_id), key=lambda o: o.created_at, reverse=True
        )

    # -------------------- Staff side --------------------

    def pending_orders(self) -> list[Order]:
        """Oldest first, the order staff should work through them."""
        pending = [o for o in self.orders.get_all_orders() if o.status is OrderStatus.PENDING]
        return sorted(pending, key=lambda o: o.created_at)

    def fulfill_order(self, order_id: str) -> FulfillmentResult:
        with self._lock:
            inventory = self.inventory.get_all_items()
            order = self.orders.get_order(order_id)
            result = fulfill_order(
                order_id, [order] if order else [], inventory, self.clock.now()
            )
            if not result.success:
                logger.warning(f"Fulfillment of order {order_id} failed: {result.message}")
                return result

            before = {item.id: item.quantity for item in inventory}
            for item in result.updated_inventory:
                if item.quantity != before[item.id]:
                    self.inventory.set_item_quantity(item.id, item.quantity)
            for record in result.checkouts:
                self.ledger.append_checkout(record)
            for entry in result.transactions:
                self.transactions.append_transaction(entry)
            self.orders.replace_order(result.updated_order)

        logger.info(
            f"Order {order_id} fulfilled for {result.updated_order.student_id} "
            f"({len(result.checkouts)} line items)"
        )
        return result

    def cancel_order(self, order_id: str) -> CancelResult:
        with self._lock:
            order = self.orders.get_order(order_id)
            result = cancel_order(order_id, [order] if order else [])
            if not result.success:
                logger.warning(f"Cancellation of order {order_id} failed: {result.message}")
                return result
            self.orders.replace_order(result.updated_order)

        logger.info(f"Order {order_id} cancelled")
        return result
