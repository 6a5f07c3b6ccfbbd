from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .errors import ErrorKind


class Unit(str, Enum):
    ITEM = "item"
    KG = "kg"
    LB = "lb"


class OrderStatus(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class TransactionType(str, Enum):
    IN = "in"
    OUT = "out"


def validate_unit(unit) -> Unit:
    """
    Maps any stored unit value onto a known Unit, defaulting to Unit.ITEM
    for missing or unrecognised values.
    """
    if isinstance(unit, Unit):
        return unit
    try:
        return Unit(str(unit).lower())
    except ValueError:
        return Unit.ITEM


def _coerce_unit(value):
    # A missing unit stays missing; anything else goes through validate_unit.
    return None if value is None else validate_unit(value)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PantryModel(BaseModel):
    class Config:
        # Stored JSON uses camelCase keys; Python code uses snake_case names.
        populate_by_name = True


class Category(PantryModel):
    id: str
    name: str
    description: str = ""


class InventoryItem(PantryModel):
    """
    A stocked pantry item. Quantity is real-valued so weighed goods (kg/lb)
    can hold fractional stock.
    """

    id: str
    name: str
    category: str
    quantity: float = Field(default=0, ge=0)
    student_limit: float = Field(default=1, ge=0, alias="studentLimit")
    limit_duration: int = Field(default=0, ge=0, alias="limitDuration")
    limit_duration_minutes: int = Field(default=0, ge=0, alias="limitDurationMinutes")
    unit: Optional[Unit] = Unit.ITEM
    is_weighed: bool = Field(default=False, alias="isWeighed")
    barcode: Optional[str] = None

    normalize_unit = field_validator("unit", mode="before")(_coerce_unit)

    @property
    def restriction_minutes(self) -> int:
        """Length of the cooldown window in minutes."""
        return self.limit_duration * 24 * 60 + self.limit_duration_minutes


class Transaction(PantryModel):
    id: str
    type: TransactionType
    item_id: str = Field(..., alias="itemId")
    item_name: str = Field(..., alias="itemName")
    quantity: float = Field(..., ge=0)
    user: str
    timestamp: datetime
    unit: Optional[Unit] = None

    normalize_unit = field_validator("unit", mode="before")(_coerce_unit)
    normalize_timestamp = field_validator("timestamp")(_as_utc)


class CheckoutRecord(PantryModel):
    """One completed hand-out to a student. Immutable once written."""

    student_id: str = Field(..., alias="studentId")
    item_id: str = Field(..., alias="itemId")
    quantity: float = Field(..., ge=0)
    timestamp: datetime
    unit: Optional[Unit] = None

    normalize_unit = field_validator("unit", mode="before")(_coerce_unit)
    normalize_timestamp = field_validator("timestamp")(_as_utc)

    class Config:
        populate_by_name = True
        frozen = True


class OrderLineItem(PantryModel):
    item_id: str = Field(..., alias="itemId")
    item_name: str = Field(..., alias="itemName")
    quantity: float = Field(..., gt=0)
    category: str = "unknown"
    unit: Optional[Unit] = None

    normalize_unit = field_validator("unit", mode="before")(_coerce_unit)


class Order(PantryModel):
    id: str
    student_id: str = Field(..., alias="studentId")
    items: list[OrderLineItem]
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = Field(..., alias="createdAt")
    fulfilled_at: Optional[datetime] = Field(default=None, alias="fulfilledAt")
    notified: bool = False

    normalize_created = field_validator("created_at")(_as_utc)
    normalize_fulfilled = field_validator("fulfilled_at")(_as_utc)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.FULFILLED, OrderStatus.CANCELLED)


class CartLine(PantryModel):
    """What a student puts in the cart: an item id and how much of it."""

    item_id: str = Field(..., alias="itemId")
    quantity: float = Field(..., gt=0)


# --- Operation results ---


class EligibilityResult(BaseModel):
    allowed: bool
    error: Optional[ErrorKind] = None
    reason: Optional[str] = None
    available_quantity: Optional[float] = None
    remaining_minutes: Optional[int] = None


class OrderResult(BaseModel):
    success: bool
    order_id: Optional[str] = None
    order: Optional[Order] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    time_remaining: Optional[int] = None
    # Per-item rejection reasons from cart validation, keyed by item id.
    item_errors: dict[str, str] = Field(default_factory=dict)


class FulfillmentResult(BaseModel):
    success: bool
    updated_order: Optional[Order] = None
    updated_inventory: Optional[list[InventoryItem]] = None
    checkouts: list[CheckoutRecord] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    item_id: Optional[str] = None


class CancelResult(BaseModel):
    success: bool
    updated_order: Optional[Order] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None


# --- Report rows ---


class ProductAnalytics(PantryModel):
    """
    One row of the product report: stock movement for a single item.
    """

    id: str = Field(..., alias="ID")
    name: str = Field(..., alias="Name")
    category: str = Field(..., alias="Category")
    current_stock: float = Field(default=0, ge=0, alias="Current Stock")
    total_sold: float = Field(default=0, ge=0, alias="Total Sold")
    total_restocked: float = Field(default=0, ge=0, alias="Total Restocked")
    popularity_score: float = Field(default=0, ge=0, alias="Popularity Score")
    turnover_rate: float = Field(default=0, ge=0, alias="Turnover Rate")


class CategoryAnalytics(PantryModel):
    id: str = Field(..., alias="ID")
    name: str = Field(..., alias="Name")
    total_sold: float = Field(default=0, ge=0, alias="Total Sold")
    current_stock: float = Field(default=0, ge=0, alias="Current Stock")
