import json

import pytest
from pydantic import ValidationError

from pantry.orders import OrderLifecycle
from pantry.schemas import CartLine, OrderStatus, Unit
from pantry.storage import JsonPantryStore

from conftest import make_item


def test_first_open_seeds_inventory_and_categories(tmp_path):
    store = JsonPantryStore(tmp_path, seed_sample_data=True)

    assert len(store.get_all_items()) == 20
    assert store.get_item("6").limit_duration_minutes == 30
    assert {c.id for c in store.get_categories()} >= {"essentials", "south-asian"}
    assert (tmp_path / "inventory_items.json").exists()
    assert not (tmp_path / "student_orders.json").exists()


def test_seeding_can_be_disabled(tmp_path):
    store = JsonPantryStore(tmp_path, seed_sample_data=False)
    assert store.get_all_items() == []
    assert store.get_categories() == []


def test_fulfilled_order_survives_reopen(tmp_path, clock):
    store = JsonPantryStore(tmp_path, seed_sample_data=True)
    lifecycle = OrderLifecycle(store, store, store, store, clock=clock)
    order_id = lifecycle.submit_cart("s1", [CartLine(item_id="2", quantity=2)]).order_id
    lifecycle.fulfill_order(order_id)

    reopened = JsonPantryStore(tmp_path)

    assert reopened.get_item("2").quantity == 28
    assert reopened.get_order(order_id).status is OrderStatus.FULFILLED
    assert reopened.get_order(order_id).fulfilled_at == clock.now()
    assert [c.quantity for c in reopened.get_checkouts_for("s1", "2")] == [2]
    assert len(reopened.get_transactions()) == 1


def test_files_use_camel_case_keys(tmp_path):
    store = JsonPantryStore(tmp_path, seed_sample_data=False)
    store.add_item(make_item("rice", "Rice", limit_duration=7))

    (row,) = json.loads((tmp_path / "inventory_items.json").read_text(encoding="utf-8"))
    assert row["studentLimit"] == 2
    assert row["limitDuration"] == 7
    assert row["isWeighed"] is False
    assert row["unit"] == "item"


def test_unknown_units_load_as_items(tmp_path):
    rows = [
        {"id": "x", "name": "Flour", "category": "other", "quantity": 3, "unit": "bag"},
        {"id": "y", "name": "Salt", "category": "other", "quantity": 1, "unit": None},
    ]
    (tmp_path / "inventory_items.json").write_text(json.dumps(rows), encoding="utf-8")

    store = JsonPantryStore(tmp_path, seed_sample_data=False)

    assert store.get_item("x").unit is Unit.ITEM
    assert store.get_item("y").unit is None


def test_corrupt_records_are_not_silently_dropped(tmp_path):
    rows = [{"id": "x", "name": "Flour", "category": "other", "quantity": -1}]
    (tmp_path / "inventory_items.json").write_text(json.dumps(rows), encoding="utf-8")

    with pytest.raises(ValidationError):
        JsonPantryStore(tmp_path, seed_sample_data=False)
