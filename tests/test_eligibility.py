"""Eligibility rules: stock, per-student limit, and cooldown window."""

from datetime import timedelta

import pytest

from pantry.eligibility import EligibilityEngine, check_eligibility, latest_checkout, merge_cart_lines
from pantry.errors import ErrorKind
from pantry.schemas import CartLine

from conftest import NOW, make_checkout, make_item


def test_missing_item_is_rejected():
    result = check_eligibility("s1", "ghost", 1, None, [], NOW)
    assert not result.allowed
    assert result.error is ErrorKind.ITEM_NOT_FOUND
    assert result.reason == "Item not found"


def test_request_above_stock_reports_available_quantity():
    item = make_item(quantity=3, student_limit=10)
    result = check_eligibility("s1", item.id, 5, item, [], NOW)
    assert result.error is ErrorKind.INSUFFICIENT_STOCK
    assert result.available_quantity == 3
    assert result.reason == "Not enough quantity in stock"


def test_stock_is_checked_before_limit():
    item = make_item(quantity=1, student_limit=1)
    result = check_eligibility("s1", item.id, 2, item, [], NOW)
    assert result.error is ErrorKind.INSUFFICIENT_STOCK


@pytest.mark.parametrize("requested", [3, 4, 10])
def test_request_above_limit_fails_even_with_active_cooldown(requested):
    item = make_item(quantity=50, student_limit=2)
    ledger = [make_checkout("s1", item.id, NOW - timedelta(minutes=1))]
    result = check_eligibility("s1", item.id, requested, item, ledger, NOW)
    assert result.error is ErrorKind.LIMIT_EXCEEDED
    assert result.available_quantity == 2
    assert result.reason == "Limited to 2 items"


def test_limit_message_uses_weight_unit():
    item = make_item(quantity=20, student_limit=1.5, unit="kg")
    result = check_eligibility("s1", item.id, 2, item, [], NOW)
    assert result.reason == "Limited to 1.50 kg"


def test_no_history_means_no_cooldown():
    item = make_item(limit_duration=30, limit_duration_minutes=0)
    result = check_eligibility("s1", item.id, 1, item, [], NOW)
    assert result.allowed
    assert result.error is None


def test_cooldown_boundary(minutes_ago):
    item = make_item(limit_duration=0, limit_duration_minutes=30)
    t0 = minutes_ago(29)
    ledger = [make_checkout("s1", item.id, t0)]

    blocked = check_eligibility("s1", item.id, 1, item, ledger, NOW)
    assert blocked.error is ErrorKind.COOLDOWN_ACTIVE
    assert blocked.remaining_minutes == 1
    assert blocked.reason == "Available in 1 minute"

    assert check_eligibility("s1", item.id, 1, item, ledger, t0 + timedelta(minutes=30)).allowed
    assert check_eligibility("s1", item.id, 1, item, ledger, t0 + timedelta(hours=5)).allowed


def test_cooldown_in_days_reports_remaining_time():
    item = make_item(limit_duration=7, limit_duration_minutes=0)
    ledger = [make_checkout("s1", item.id, NOW - timedelta(days=1))]
    result = check_eligibility("s1", item.id, 1, item, ledger, NOW)
    assert result.remaining_minutes == 6 * 24 * 60
    assert result.reason == "Available in 6 days"


def test_zero_window_never_restricts():
    item = make_item(limit_duration=0, limit_duration_minutes=0)
    ledger = [make_checkout("s1", item.id, NOW), make_checkout("s1", item.id, NOW + timedelta(minutes=5))]
    assert check_eligibility("s1", item.id, 1, item, ledger, NOW).allowed


def test_only_latest_checkout_counts(minutes_ago):
    item = make_item(limit_duration=0, limit_duration_minutes=60)
    ledger = [
        make_checkout("s1", item.id, minutes_ago(10)),
        make_checkout("s1", item.id, minutes_ago(500)),
    ]
    result = check_eligibility("s1", item.id, 1, item, ledger, NOW)
    assert result.remaining_minutes == 50


def test_other_students_and_items_are_ignored(minutes_ago):
    item = make_item(limit_duration=0, limit_duration_minutes=60)
    ledger = [
        make_checkout("s2", item.id, minutes_ago(1)),
        make_checkout("s1", "other-item", minutes_ago(1)),
    ]
    assert check_eligibility("s1", item.id, 1, item, ledger, NOW).allowed


def test_latest_checkout_tie_keeps_first_written():
    first = make_checkout("s1", "rice", NOW, quantity=1)
    second = make_checkout("s1", "rice", NOW, quantity=2)
    assert latest_checkout([first, second], "s1", "rice") is first
    assert latest_checkout([], "s1", "rice") is None


def test_engine_reads_without_writing(store, clock):
    engine = EligibilityEngine(store, store, clock)
    before_items = store.get_all_items()

    for _ in range(3):
        assert engine.check("s1", "rice", 1).allowed

    assert store.get_all_items() == before_items
    assert store.get_all_checkouts() == []


def test_engine_uses_ledger_and_clock(store, clock):
    store.append_checkout(make_checkout("s1", "rice", clock.now()))
    engine = EligibilityEngine(store, store, clock)

    assert engine.check("s1", "rice", 1).error is ErrorKind.COOLDOWN_ACTIVE
    clock.advance(minutes=30)
    assert engine.check("s1", "rice", 1).allowed


def test_check_cart_collects_every_failure(store, clock):
    engine = EligibilityEngine(store, store, clock)
    errors = engine.check_cart(
        "s1",
        [
            CartLine(item_id="rice", quantity=1),
            CartLine(item_id="beans", quantity=4),
            CartLine(item_id="ghost", quantity=1),
        ],
    )
    assert errors == {"beans": "Not enough quantity in stock", "ghost": "Item not found"}


def test_check_cart_judges_the_total_for_each_item(store, clock):
    engine = EligibilityEngine(store, store, clock)
    lines = [CartLine(item_id="rice", quantity=2), CartLine(item_id="rice", quantity=2)]

    failures = engine.check_cart_results("s1", lines)

    assert list(failures) == ["rice"]
    assert failures["rice"].error is ErrorKind.LIMIT_EXCEEDED
    assert engine.check_cart("s1", lines) == {"rice": "Limited to 2 items"}


def test_merge_cart_lines_keeps_first_seen_order():
    merged = merge_cart_lines(
        [
            CartLine(item_id="beans", quantity=1),
            CartLine(item_id="rice", quantity=0.5),
            CartLine(item_id="beans", quantity=2),
        ]
    )
    assert [(line.item_id, line.quantity) for line in merged] == [("beans", 3), ("rice", 0.5)]
