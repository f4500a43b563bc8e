import asyncio
import logging
from datetime import datetime, tzinfo
from typing import Callable, List, Optional

from kitchen_console.application import projections
from kitchen_console.application.alerts import AlertListener, NewOrderAlert, NewOrderAlerts
from kitchen_console.application.background import DetachedTasks
from kitchen_console.application.change_feed_listener import ChangeFeedListener, ListenerState
from kitchen_console.application.get_orders import LoadOrdersUseCase
from kitchen_console.application.interfaces import (
    ChangeFeed, NotificationsService, PlatformNotifier, RingPlayer
)
from kitchen_console.application.order_store import OrderStore, Snapshot, StoreListener
from kitchen_console.application.transition_order import TransitionOrderUseCase
from kitchen_console.domain.exceptions import PersistenceFailureError
from kitchen_console.domain.models import Order, OrderStatus, Staff

logger = logging.getLogger(__name__)


class KitchenSession:
    """One staff member's console: owns the store, the change feed and the alerts.

    Nothing here is shared between sessions; a new login gets a new session.
    """

    def __init__(
        self,
        unit_of_work,
        feed: ChangeFeed,
        notifications_service: NotificationsService,
        ring_player: Optional[RingPlayer] = None,
        platform_notifier: Optional[PlatformNotifier] = None,
        timezone: Optional[tzinfo] = None,
        feed_start_delay: float = 1.0,
        alert_display_seconds: float = 10.0,
        refresh_interval: float = 0,
        shutdown_timeout: float = 5.0,
        staff: Optional[Staff] = None,
    ):
        self.staff = staff
        self.store = OrderStore()
        self.tasks = DetachedTasks()
        self.alerts = NewOrderAlerts(
            self.tasks,
            ring_player=ring_player,
            platform_notifier=platform_notifier,
            display_seconds=alert_display_seconds,
        )
        self.listener = ChangeFeedListener(feed, self.store, self.alerts, start_delay=feed_start_delay)
        self._load_orders = LoadOrdersUseCase(unit_of_work)
        self._transition = TransitionOrderUseCase(unit_of_work, self.store, notifications_service, self.tasks)
        self._timezone = timezone
        self._refresh_interval = refresh_interval
        self._refresh_task: Optional[asyncio.Task] = None
        self._shutdown_timeout = shutdown_timeout

    async def open(self) -> None:
        try:
            await self.refresh()
        except PersistenceFailureError:
            logger.warning("Initial order load failed, starting with an empty list")
        self.listener.start()
        if self._refresh_interval > 0:
            self._refresh_task = asyncio.get_running_loop().create_task(
                self._refresh_loop(), name="order-refresh"
            )

    async def close(self) -> None:
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None
        await self.listener.stop()
        self.alerts.close()
        try:
            await asyncio.wait_for(self.tasks.drain(), timeout=self._shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Cancelling {len(self.tasks)} background tasks still running at close")
            await self.tasks.cancel_all()
        logger.info("Kitchen session closed")

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            try:
                await self.refresh()
            except PersistenceFailureError:
                pass
            except Exception as e:
                logger.error(f"Error in refresh loop: {e}", exc_info=True)

    async def refresh(self) -> Snapshot:
        orders = await self._load_orders()
        self.store.replace_all(orders)
        return self.store.all()

    async def transition(self, order_id: str, target: OrderStatus, reason: Optional[str] = None) -> Order:
        order = await self._transition(order_id, target, reason)
        try:
            await self.refresh()
        except PersistenceFailureError:
            logger.warning(f"Refresh after updating {order.order_number} failed, keeping local state")
        return self.store.get(order_id) or order

    async def accept(self, order_id: str) -> Order:
        return await self.transition(order_id, OrderStatus.PAID)

    async def reject(self, order_id: str, reason: Optional[str] = None) -> Order:
        return await self.transition(order_id, OrderStatus.REJECTED, reason)

    def snapshot(self) -> Snapshot:
        return self.store.all()

    def today_pending(self, now: Optional[datetime] = None) -> List[Order]:
        now = now or datetime.now(self._timezone)
        return projections.today_pending(self.store.all(), now, self._timezone)

    def paid_history(self) -> List[projections.DayGroup]:
        return self._history(OrderStatus.PAID)

    def rejected_history(self) -> List[projections.DayGroup]:
        return self._history(OrderStatus.REJECTED)

    def _history(self, status: OrderStatus) -> List[projections.DayGroup]:
        grouped = projections.group_by_day(self.store.all(), status, self._timezone)
        return projections.sort_days_descending(grouped)

    @property
    def current_alert(self) -> Optional[NewOrderAlert]:
        return self.alerts.current

    @property
    def feed_state(self) -> ListenerState:
        return self.listener.state

    def subscribe_store(self, listener: StoreListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def subscribe_alerts(self, listener: AlertListener) -> Callable[[], None]:
        return self.alerts.subscribe(listener)
