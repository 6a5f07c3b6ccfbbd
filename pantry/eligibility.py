import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .clock import Clock, SystemClock
from .errors import ErrorKind
from .repositories import InventoryRepository, LedgerRepository
from .schemas import CartLine, CheckoutRecord, EligibilityResult, InventoryItem
from .utils import calculate_time_remaining, format_quantity_with_unit, format_remaining_time

logger = logging.getLogger(__name__)


def latest_checkout(
    ledger: Iterable[CheckoutRecord], student_id: str, item_id: str
) -> Optional[CheckoutRecord]:
    """
    Most recent ledger entry for (student_id, item_id), or None.
    On identical timestamps the entry written first is kept.
    """
    latest = None
    for record in ledger:
        if record.student_id != student_id or record.item_id != item_id:
            continue
        if latest is None or record.timestamp > latest.timestamp:
            latest = record
    return latest


def check_eligibility(
    student_id: str,
    item_id: str,
    requested_quantity: float,
    item: Optional[InventoryItem],
    ledger: Iterable[CheckoutRecord],
    now: datetime,
) -> EligibilityResult:
    """
    Decides whether a student may take `requested_quantity` of an item.

    Checks run in a fixed order and stop at the first failure:
    the item exists, stock covers the request, the request is within the
    per-student limit, and the item's cooldown window has passed since the
    student's latest checkout of it. Pure: reads its arguments only.
    """
    if item is None or item.id != item_id:
        return EligibilityResult(
            allowed=False, error=ErrorKind.ITEM_NOT_FOUND, reason="Item not found"
        )

    if requested_quantity > item.quantity:
        return EligibilityResult(
            allowed=False,
            error=ErrorKind.INSUFFICIENT_STOCK,
            reason="Not enough quantity in stock",
            available_quantity=item.quantity,
        )

    if requested_quantity > item.student_limit:
        return EligibilityResult(
            allowed=False,
            error=ErrorKind.LIMIT_EXCEEDED,
            reason=f"Limited to {format_quantity_with_unit(item.student_limit, item.unit)}",
            available_quantity=item.student_limit,
        )

    # A zero-length window never restricts, whatever the history says.
    latest = latest_checkout(ledger, student_id, item_id) if item.restriction_minutes > 0 else None
    if latest is not None:
        remaining = calculate_time_remaining(
            latest.timestamp, item.limit_duration, item.limit_duration_minutes, now
        )
        if remaining > 0:
            return EligibilityResult(
                allowed=False,
                error=ErrorKind.COOLDOWN_ACTIVE,
                reason=format_remaining_time(remaining),
                remaining_minutes=remaining,
            )

    return EligibilityResult(allowed=True)


def merge_cart_lines(lines: Iterable[CartLine]) -> list[CartLine]:
    """
    Collapses lines naming the same item into one line carrying the summed
    quantity, keeping the order in which items first appear.
    """
    totals: dict[str, float] = {}
    for line in lines:
        totals[line.item_id] = totals.get(line.item_id, 0) + line.quantity
    return [CartLine(item_id=item_id, quantity=quantity) for item_id, quantity in totals.items()]


class EligibilityEngine:
    """
    Runs eligibility checks against live repositories.
    Never writes to either repository, so it is safe for repeated cart
    pre-validation.
    """

    def __init__(
        self,
        inventory: InventoryRepository,
        ledger: LedgerRepository,
        clock: Optional[Clock] = None,
    ):
        self.inventory = inventory
        self.ledger = ledger
        self.clock = clock or SystemClock()

    def check(self, student_id: str, item_id: str, requested_quantity: float) -> EligibilityResult:
        result = check_eligibility(
            student_id,
            item_id,
            requested_quantity,
            self.inventory.get_item(item_id),
            self.ledger.get_checkouts_for(student_id, item_id),
            self.clock.now(),
        )
        if not result.allowed:
            logger.warning(
                f"Student {student_id} refused {requested_quantity} of item {item_id}: "
                f"{result.error.value} ({result.reason})"
            )
        return result

    def check_cart_results(
        self, student_id: str, lines: Sequence[CartLine]
    ) -> dict[str, EligibilityResult]:
        """
        Checks the cart per item, on the total quantity requested across all
        lines for that item, and returns the failing results keyed by item id.
        """
        failures = {}
        for line in merge_cart_lines(lines):
            result = self.check(student_id, line.item_id, line.quantity)
            if not result.allowed:
                failures[line.item_id] = result
        return failures

    def check_cart(self, student_id: str, lines: Sequence[CartLine]) -> dict[str, str]:
        """
        Returns {item_id: reason} for every item the student cannot take.
        An empty dict means the whole cart may be submitted.
        """
        return {
            item_id: result.reason or "Cannot take this item"
            for item_id, result in self.check_cart_results(student_id, lines).items()
        }
