import math
import re
import uuid
from datetime import datetime
from typing import Optional

from .schemas import Unit, validate_unit


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def new_id(prefix: str) -> str:
    """Returns a unique record id such as 'order-3f9c1a2b7d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def slugify_category(name: str) -> str:
    """'South Asian' -> 'south-asian'"""
    return re.sub(r"\s+", "-", name.strip().lower())


def minutes_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 60


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_quantity_with_unit(quantity: float, unit: Optional[object]) -> str:
    """
    Renders a quantity for display.
    Counted goods read '1 item' / '3 items'; weighed goods keep two decimals
    unless the amount is whole ('2 kg', '2.50 kg').
    """
    valid_unit = validate_unit(unit)
    is_whole = float(quantity).is_integer()

    if valid_unit is Unit.ITEM:
        shown = int(quantity) if is_whole else quantity
        return f"{shown} {'item' if quantity == 1 else 'items'}"

    shown = str(int(quantity)) if is_whole else f"{quantity:.2f}"
    return f"{shown} {valid_unit.value}"


def format_time_restriction(days: int, minutes: int) -> str:
    if days == 0 and minutes == 0:
        return "No restriction"

    parts = []
    if days > 0:
        parts.append(_plural(days, "day"))
    if minutes > 0:
        parts.append(_plural(minutes, "minute"))
    return " and ".join(parts)


def calculate_time_remaining(
    checkout_time: datetime, days: int, minutes: int, now: datetime
) -> int:
    """Whole minutes (rounded up) until a cooldown that began at checkout_time ends."""
    restriction_minutes = days * 24 * 60 + minutes
    return math.ceil(restriction_minutes - minutes_between(checkout_time, now))


def format_remaining_time(minutes: int) -> str:
    if minutes <= 0:
        return "Available now"

    if minutes < 60:
        return f"Available in {_plural(minutes, 'minute')}"

    hours, remaining_minutes = divmod(minutes, 60)
    if hours < 24:
        result = f"Available in {_plural(hours, 'hour')}"
        if remaining_minutes > 0:
            result += f" and {_plural(remaining_minutes, 'minute')}"
        return result

    days, remaining_hours = divmod(hours, 24)
    result = f"Available in {_plural(days, 'day')}"
    tail = []
    if remaining_hours > 0:
        tail.append(_plural(remaining_hours, "hour"))
    if remaining_minutes > 0:
        tail.append(_plural(remaining_minutes, "minute"))
    if tail:
        result += " and " + " and ".join(tail)
    return result
