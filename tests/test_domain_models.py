"""Tests for the order model and its transition table"""

from datetime import date, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from kitchen_console.domain.exceptions import ProjectionDataError
from kitchen_console.domain.models import (
    ChangeEvent, ChangeKind, Order, OrderItem, OrderStatus, parse_calendar_day
)
from conftest import make_order


@pytest.mark.parametrize("target", [OrderStatus.PAID, OrderStatus.REJECTED])
def test_pending_can_move_to_terminal_states(target):
    assert make_order().can_transition_to(target)


@pytest.mark.parametrize("current", [OrderStatus.PAID, OrderStatus.REJECTED])
@pytest.mark.parametrize("target", list(OrderStatus))
def test_terminal_states_have_no_transitions(current, target):
    order = make_order(status=current, rejected_reason="x" if current == OrderStatus.REJECTED else None)
    assert not order.can_transition_to(target)


def test_pending_to_pending_is_not_a_transition():
    assert not make_order().can_transition_to(OrderStatus.PENDING)


def test_rejected_reason_only_allowed_on_rejected_orders():
    with pytest.raises(ValidationError):
        make_order(status=OrderStatus.PAID, rejected_reason="late")

    assert make_order(status=OrderStatus.REJECTED, rejected_reason="").rejected_reason == ""


def test_with_status_returns_new_instance_and_drops_reason_for_paid():
    order = make_order()
    paid = order.with_status(OrderStatus.PAID, "ignored")

    assert order.status == OrderStatus.PENDING
    assert paid.status == OrderStatus.PAID
    assert paid.rejected_reason is None
    assert paid.id == order.id


def test_items_accept_camel_case_payloads():
    item = OrderItem.model_validate({
        "name": "Pizza Quattro",
        "quantity": 2,
        "price": "32.50",
        "subtotal": "65.00",
        "selectedSize": "large",
        "selectedExtras": [{"name": "extra cheese", "quantity": 1, "price": "4"}],
        "isSpicy": True,
    })

    assert item.selected_size == "large"
    assert item.selected_extras[0].price == Decimal("4")
    assert item.is_spicy is True


def test_item_quantity_must_be_positive():
    with pytest.raises(ValidationError):
        OrderItem(name="Wings", quantity=0, price=10)


def test_item_count_sums_quantities():
    order = make_order(items=[
        {"name": "Wings", "quantity": 3, "price": "5"},
        {"name": "Cola", "quantity": 2, "price": "7"},
    ])
    assert order.item_count == 5


def test_order_is_immutable():
    order = make_order()
    with pytest.raises(ValidationError):
        order.status = OrderStatus.PAID


@pytest.mark.parametrize("value,expected", [
    ("2024-05-01", date(2024, 5, 1)),
    ("2024-05-01T23:10:00", date(2024, 5, 1)),
    ("2024-05-01T23:10:00+00:00", date(2024, 5, 2)),
    ("2024-05-01T21:10:00Z", date(2024, 5, 2)),
])
def test_parse_calendar_day_uses_console_timezone_for_aware_values(value, expected):
    assert parse_calendar_day(value, ZoneInfo("Europe/Bucharest")) == expected


def test_parse_calendar_day_without_timezone_keeps_utc_date():
    assert parse_calendar_day("2024-05-01T23:10:00+00:00") == date(2024, 5, 1)
    assert parse_calendar_day("2024-05-01T23:10:00+00:00", timezone.utc) == date(2024, 5, 1)


@pytest.mark.parametrize("value", ["", "   ", "yesterday", "2024-13-45"])
def test_parse_calendar_day_rejects_malformed_values(value):
    with pytest.raises(ProjectionDataError):
        parse_calendar_day(value)


def test_order_day_is_none_for_missing_or_bad_dates():
    assert make_order(order_date=None).order_day() is None
    assert make_order(order_date="not a date").order_day() is None


def test_change_event_parses_wire_payload():
    event = ChangeEvent.model_validate({
        "event": "created",
        "record": {"id": "7", "order_number": "CMD-7", "status": "pending", "total": 12.5},
    })
    assert event.event == ChangeKind.CREATED
    assert event.record.total == Decimal("12.5")
