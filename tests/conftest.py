"""Test configuration and fixtures"""

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import List, Optional

import pytest

from kitchen_console.application.alerts import NewOrderAlerts
from kitchen_console.application.background import DetachedTasks
from kitchen_console.application.interfaces import ChangeFeed, NotificationsService
from kitchen_console.application.order_store import OrderStore
from kitchen_console.domain.models import ChangeEvent, Order, OrderStatus


def make_order(order_id="1", status=OrderStatus.PENDING, order_date="2024-05-01", total=50, **fields) -> Order:
    data = dict(
        id=str(order_id),
        order_number=f"CMD-{order_id}",
        status=status,
        order_date=order_date,
        total=Decimal(str(total)),
        customer_name="Ana Pop",
        customer_phone="+40700000001",
        items=[{"name": "Pizza Diavola", "quantity": 1, "price": str(total), "subtotal": str(total)}],
    )
    data.update(fields)
    return Order(**data)


class FakeOrderRepository:
    def __init__(self, orders: List[Order]):
        self.orders = {o.id: o for o in orders}
        self.fail_reads = False
        self.fail_writes = False
        self.writes = []

    async def list_all(self) -> List[Order]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return list(self.orders.values())

    async def create(self, order: Order) -> None:
        self.orders[order.id] = order

    async def update_status(self, order_id, status, rejected_reason=None) -> bool:
        if self.fail_writes:
            raise ConnectionError("database unavailable")
        self.writes.append((order_id, status, rejected_reason))
        current = self.orders.get(order_id)
        if current is None or current.status != OrderStatus.PENDING:
            return False
        self.orders[order_id] = current.with_status(status, rejected_reason)
        return True


class FakeStaffRepository:
    def __init__(self):
        self.accounts = {}

    async def get_by_username(self, username):
        return self.accounts.get(username)


class FakeUnitOfWork:
    def __init__(self, orders: Optional[List[Order]] = None):
        self.orders = FakeOrderRepository(orders or [])
        self.staff = FakeStaffRepository()
        self.commits = 0

    @asynccontextmanager
    async def __call__(self):
        yield self

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        pass


class FakeNotifications(NotificationsService):
    def __init__(self, fail: bool = False):
        self.sent: List[Order] = []
        self.fail = fail

    async def send_order_accepted(self, order: Order) -> bool:
        self.sent.append(order)
        if self.fail:
            raise ConnectionError("notification service down")
        return True


class FakeChangeFeed(ChangeFeed):
    """In-memory change channel; push() delivers an event to the listener."""

    def __init__(self, fail_start: bool = False):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.fail_start = fail_start
        self.started = 0
        self.stopped = 0

    async def start(self) -> None:
        if self.fail_start:
            raise ConnectionError("broker unreachable")
        self.started += 1

    async def stop(self) -> None:
        self.stopped += 1

    def push(self, kind: str, order: Order) -> None:
        self._queue.put_nowait(ChangeEvent(event=kind, record=order))

    def push_error(self, error: Exception) -> None:
        """The next read from the feed raises error."""
        self._queue.put_nowait(error)

    async def __aiter__(self):
        while True:
            event = await self._queue.get()
            if isinstance(event, Exception):
                self._queue.task_done()
                raise event
            yield event
            self._queue.task_done()

    async def drained(self) -> None:
        await asyncio.wait_for(self._queue.join(), timeout=1)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
async def tasks():
    tasks = DetachedTasks()
    yield tasks
    await tasks.cancel_all()


@pytest.fixture
async def alerts(tasks):
    alerts = NewOrderAlerts(tasks, display_seconds=10)
    yield alerts
    alerts.close()


@pytest.fixture
def notifications():
    return FakeNotifications()
