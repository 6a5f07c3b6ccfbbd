from datetime import datetime, timedelta, timezone

import pytest

from pantry.clock import FixedClock
from pantry.inventory import InventoryManager
from pantry.orders import OrderLifecycle
from pantry.repositories import InMemoryPantryStore
from pantry.schemas import (
    CheckoutRecord,
    InventoryItem,
    Order,
    OrderLineItem,
    OrderStatus,
)
from pantry.seed import DEFAULT_CATEGORIES

NOW = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)


def make_item(item_id="1", name="Rice", **overrides) -> InventoryItem:
    fields = dict(
        id=item_id,
        name=name,
        category="grains",
        quantity=10,
        student_limit=2,
        limit_duration=0,
        limit_duration_minutes=30,
        unit="item",
    )
    fields.update(overrides)
    return InventoryItem(**fields)


def make_checkout(student_id, item_id, timestamp, quantity=1) -> CheckoutRecord:
    return CheckoutRecord(
        student_id=student_id, item_id=item_id, quantity=quantity, timestamp=timestamp
    )


def make_order(order_id, student_id, lines, created_at, status=OrderStatus.PENDING) -> Order:
    return Order(
        id=order_id,
        student_id=student_id,
        items=[
            OrderLineItem(item_id=item_id, item_name=name, quantity=qty, category="grains")
            for item_id, name, qty in lines
        ],
        status=status,
        created_at=created_at,
    )


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def items():
    return [
        make_item("rice", "Rice", quantity=10, student_limit=2),
        make_item("beans", "Beans", category="essentials", quantity=3, student_limit=5),
        make_item(
            "lentils",
            "Lentils",
            category="south-asian",
            quantity=4.5,
            student_limit=1,
            limit_duration=7,
            limit_duration_minutes=0,
            unit="kg",
            is_weighed=True,
        ),
    ]


@pytest.fixture
def store(items):
    return InMemoryPantryStore(items=items, categories=DEFAULT_CATEGORIES)


@pytest.fixture
def lifecycle(store, clock):
    return OrderLifecycle(store, store, store, store, clock=clock)


@pytest.fixture
def manager(store, clock):
    return InventoryManager(store, store, store, clock=clock)


@pytest.fixture
def minutes_ago():
    def _at(minutes: float) -> datetime:
        return NOW - timedelta(minutes=minutes)

    return _at
