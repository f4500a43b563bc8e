from datetime import date, datetime, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from kitchen_console.domain.exceptions import ProjectionDataError


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


# pending is the only state with outgoing edges
TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.REJECTED}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


class SelectedExtra(BaseModel):
    """Value Object: extra added to a line item"""
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int = Field(default=1, gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)


class OrderItem(BaseModel):
    """Value Object: line item of an order"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    subtotal: Decimal = Decimal("0")
    selected_size: Optional[str] = Field(default=None, alias="selectedSize")
    selected_extras: tuple[SelectedExtra, ...] = Field(default=(), alias="selectedExtras")
    is_spicy: Optional[bool] = Field(default=None, alias="isSpicy")
    addons: Optional[str] = None


class Order(BaseModel):
    """Domain Entity: order. A status change yields a new instance"""
    model_config = ConfigDict(frozen=True)

    id: str
    order_number: str
    status: OrderStatus = OrderStatus.PENDING
    order_date: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_notes: Optional[str] = None
    items: tuple[OrderItem, ...] = ()
    total: Decimal = Field(default=Decimal("0"), ge=0)
    payment_method: Optional[PaymentMethod] = None
    rejected_reason: Optional[str] = None

    @model_validator(mode="after")
    def _reason_only_when_rejected(self):
        if self.rejected_reason is not None and self.status != OrderStatus.REJECTED:
            raise ValueError("rejected_reason is only allowed on rejected orders")
        return self

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def can_transition_to(self, target: OrderStatus) -> bool:
        """Business rule: only a pending order can be accepted or rejected"""
        return target in TRANSITIONS[self.status]

    def with_status(self, status: OrderStatus, rejected_reason: Optional[str] = None) -> "Order":
        return self.model_copy(update={
            "status": status,
            "rejected_reason": rejected_reason if status == OrderStatus.REJECTED else None,
        })

    def order_day(self, tz: Optional[tzinfo] = None) -> Optional[date]:
        """Calendar day of order_date, or None when it is missing or malformed."""
        if self.order_date is None:
            return None
        try:
            return parse_calendar_day(self.order_date, tz)
        except ProjectionDataError:
            return None


def parse_calendar_day(value: str, tz: Optional[tzinfo] = None) -> date:
    if not isinstance(value, str) or not value.strip():
        raise ProjectionDataError(value)
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise ProjectionDataError(value) from None
    if parsed.tzinfo is not None and tz is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class ChangeEvent(BaseModel):
    event: ChangeKind
    record: Order


class Staff(BaseModel):
    id: str
    username: str
    display_name: Optional[str] = None
