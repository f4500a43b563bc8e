"""Read-only views derived from an order snapshot.

Every function is pure: the same snapshot always yields the same result.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from kitchen_console.domain.models import Order, OrderStatus

logger = logging.getLogger(__name__)

DAY_LABEL_FORMAT = "%d.%m.%Y"


@dataclass(frozen=True)
class DayGroup:
    day: date
    label: str
    orders: Tuple[Order, ...]
    total: Decimal

    @property
    def count(self) -> int:
        return len(self.orders)


def day_label(day: date) -> str:
    return day.strftime(DAY_LABEL_FORMAT)


def _calendar_day(moment: datetime, tz: Optional[tzinfo]) -> date:
    if moment.tzinfo is not None and tz is not None:
        moment = moment.astimezone(tz)
    return moment.date()


def today_pending(orders: Iterable[Order], now: datetime, tz: Optional[tzinfo] = None) -> List[Order]:
    """Pending orders whose order_date falls on the calendar day of now."""
    today = _calendar_day(now, tz)
    return [
        order for order in orders
        if order.status == OrderStatus.PENDING and order.order_day(tz) == today
    ]


def group_by_day(orders: Iterable[Order], status: OrderStatus, tz: Optional[tzinfo] = None) -> Dict[str, DayGroup]:
    """Orders with the given status bucketed by order_date, in snapshot order.

    Orders without a usable order_date are left out.
    """
    buckets: Dict[str, List[Order]] = {}
    days: Dict[str, date] = {}
    for order in orders:
        if order.status != status:
            continue
        day = order.order_day(tz)
        if day is None:
            logger.debug(f"Order {order.id} skipped: bad order_date {order.order_date!r}")
            continue
        label = day_label(day)
        buckets.setdefault(label, []).append(order)
        days[label] = day

    return {
        label: DayGroup(
            day=days[label],
            label=label,
            orders=tuple(day_orders),
            total=sum((o.total for o in day_orders), Decimal("0")),
        )
        for label, day_orders in buckets.items()
    }


def sort_days_descending(grouped: Dict[str, DayGroup]) -> List[DayGroup]:
    """Most recent day first; the order is taken from the parsed label."""
    def key(label: str) -> Tuple[int, date]:
        try:
            return (1, datetime.strptime(label, DAY_LABEL_FORMAT).date())
        except ValueError:
            return (0, date.min)

    return [grouped[label] for label in sorted(grouped, key=key, reverse=True)]


def history_total(groups: Iterable[DayGroup]) -> Decimal:
    return sum((group.total for group in groups), Decimal("0"))
