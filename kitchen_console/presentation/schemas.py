from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from kitchen_console.domain.models import OrderItem, OrderStatus, PaymentMethod


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: OrderStatus
    order_date: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_notes: Optional[str] = None
    items: List[OrderItem] = []
    item_count: int = 0
    total: Decimal
    payment_method: Optional[PaymentMethod] = None
    rejected_reason: Optional[str] = None

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            order_date=order.order_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            customer_notes=order.customer_notes,
            items=list(order.items),
            item_count=order.item_count,
            total=order.total,
            payment_method=order.payment_method,
            rejected_reason=order.rejected_reason
        )


class DayGroupResponse(BaseModel):
    day: date
    label: str
    count: int
    total: Decimal
    orders: List[OrderResponse]

    @classmethod
    def from_group(cls, group):
        return cls(
            day=group.day,
            label=group.label,
            count=group.count,
            total=group.total,
            orders=[OrderResponse.from_domain(o) for o in group.orders]
        )


class HistoryResponse(BaseModel):
    status: OrderStatus
    total: Decimal
    days: List[DayGroupResponse]


class RejectOrderRequest(BaseModel):
    reason: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class StaffResponse(BaseModel):
    id: str
    username: str
    display_name: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    staff: StaffResponse


class SessionResponse(BaseModel):
    username: Optional[str] = None
    feed: str
    orders: int


class AlertResponse(BaseModel):
    order: OrderResponse
    raised_at: datetime


class ErrorResponse(BaseModel):
    detail: str
