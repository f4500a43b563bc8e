import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from kitchen_console.application.background import DetachedTasks
from kitchen_console.application.interfaces import PlatformNotifier, RingPlayer
from kitchen_console.domain.models import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewOrderAlert:
    order: Order
    raised_at: datetime


AlertListener = Callable[[Optional[NewOrderAlert]], None]


class NewOrderAlerts:
    """Holds at most one visible new-order alert.

    A newer alert replaces the current one and restarts the dismiss timer;
    alerts are never queued. Listeners get the alert when it is raised and
    None when it is dismissed.
    """

    def __init__(
        self,
        tasks: DetachedTasks,
        ring_player: Optional[RingPlayer] = None,
        platform_notifier: Optional[PlatformNotifier] = None,
        display_seconds: float = 10.0,
    ):
        self._tasks = tasks
        self._ring = ring_player
        self._platform = platform_notifier
        self._display_seconds = display_seconds
        self._current: Optional[NewOrderAlert] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[AlertListener] = []

    @property
    def current(self) -> Optional[NewOrderAlert]:
        return self._current

    def raise_alert(self, order: Order) -> NewOrderAlert:
        self._cancel_timer()
        alert = NewOrderAlert(order=order, raised_at=datetime.now(timezone.utc))
        self._current = alert
        self._timer = asyncio.get_running_loop().call_later(self._display_seconds, self._expire, alert)
        logger.info(f"New order alert: {order.order_number}")
        self._notify(alert)

        if self._ring is not None:
            self._tasks.spawn(self._best_effort(self._ring.play(), "ring"), name=f"ring-{order.id}")
        if self._platform is not None:
            body = f"{order.order_number} - {order.total} LEI"
            self._tasks.spawn(
                self._best_effort(self._platform.notify("New order", body), "platform notification"),
                name=f"notify-{order.id}",
            )
        return alert

    def dismiss(self) -> None:
        self._cancel_timer()
        if self._current is not None:
            self._current = None
            self._notify(None)

    def _expire(self, alert: NewOrderAlert) -> None:
        self._timer = None
        if self._current is alert:
            self._current = None
            self._notify(None)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def subscribe(self, listener: AlertListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, alert: Optional[NewOrderAlert]) -> None:
        for listener in list(self._listeners):
            try:
                listener(alert)
            except Exception as e:
                logger.error(f"Alert listener failed: {e}", exc_info=True)

    def close(self) -> None:
        self._cancel_timer()
        self._current = None
        self._listeners.clear()

    @staticmethod
    async def _best_effort(coro, what: str) -> None:
        try:
            await coro
        except Exception as e:
            # sound and desktop popups may be unavailable on the host
            logger.debug(f"Alert {what} skipped: {e}")
