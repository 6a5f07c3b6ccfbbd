from enum import Enum


class ErrorKind(str, Enum):
    """Reasons a pantry operation can be rejected."""

    ITEM_NOT_FOUND = "ItemNotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"
    LIMIT_EXCEEDED = "LimitExceeded"
    COOLDOWN_ACTIVE = "CooldownActive"
    RATE_LIMITED = "RateLimited"
    ORDER_NOT_FOUND = "OrderNotFound"
    ORDER_NOT_PENDING = "OrderNotPending"
    EMPTY_ORDER = "EmptyOrder"


class PantryError(ValueError):
    """
    Raised by staff-side management calls when the input is rejected.
    `code` is a short machine-readable tag, `str(err)` the user-facing text.
    """

    def __init__(self, message: str, code: str = "invalid"):
        super().__init__(message)
        self.code = code
