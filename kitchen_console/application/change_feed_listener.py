import asyncio
import enum
import logging
from typing import Optional

from kitchen_console.application.alerts import NewOrderAlerts
from kitchen_console.application.interfaces import ChangeFeed
from kitchen_console.application.order_store import IngestOutcome, OrderStore
from kitchen_console.domain.exceptions import FeedConnectionError
from kitchen_console.domain.models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)


class ListenerState(str, enum.Enum):
    IDLE = "idle"
    WAITING = "waiting"
    SUBSCRIBED = "subscribed"
    DEGRADED = "degraded"
    CLOSED = "closed"


class ChangeFeedListener:
    """Feeds order change events into the store for one kitchen session.

    The subscription starts start_delay seconds after start() so the session
    is fully set up first. stop() cancels a pending start and always stops a
    feed that was started. A feed that cannot be started is not retried: the
    listener turns DEGRADED and the session falls back to explicit refreshes.
    A read error resumes consumption; only max_read_errors failures in a row
    give the feed up.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        store: OrderStore,
        alerts: NewOrderAlerts,
        start_delay: float = 1.0,
        max_read_errors: int = 3,
        resume_delay: float = 0.5,
    ):
        self._feed = feed
        self._store = store
        self._alerts = alerts
        self._start_delay = start_delay
        # consecutive read failures tolerated before the feed is given up
        self._max_read_errors = max_read_errors
        self._resume_delay = resume_delay
        self._task: Optional[asyncio.Task] = None
        self._feed_started = False
        self.state = ListenerState.IDLE

    def start(self) -> None:
        if self._task is not None:
            return
        self.state = ListenerState.WAITING
        self._task = asyncio.get_running_loop().create_task(self._run(), name="order-change-feed")

    async def _run(self) -> None:
        await asyncio.sleep(self._start_delay)

        try:
            await self._feed.start()
        except Exception as e:
            error = FeedConnectionError(f"Order change feed unavailable: {e}")
            logger.error(f"{error}; orders will only update on refresh")
            self.state = ListenerState.DEGRADED
            return

        self._feed_started = True
        self.state = ListenerState.SUBSCRIBED
        logger.info("Subscribed to order change feed")
        try:
            await self._consume()
        finally:
            await self._stop_feed()

    async def _consume(self) -> None:
        failures = 0
        while True:
            try:
                async for event in self._feed:
                    failures = 0
                    try:
                        await self.handle(event)
                    except Exception as e:
                        logger.error(f"Error processing change event: {e}", exc_info=True)
            except Exception as e:
                failures += 1
                if failures >= self._max_read_errors:
                    logger.error(f"Order change feed dropped after {failures} read errors: {e}")
                    self.state = ListenerState.DEGRADED
                    return
                logger.warning(f"Error reading order change feed, resuming: {e}")
                await asyncio.sleep(self._resume_delay)
                continue

            logger.warning("Order change feed closed by the server")
            self.state = ListenerState.DEGRADED
            return

    async def handle(self, event: ChangeEvent) -> IngestOutcome:
        order = event.record
        outcome = self._store.ingest(order)
        logger.info(f"Received {event.event.value} for order {order.id}: {outcome.value}")

        if event.event == ChangeKind.CREATED and outcome == IngestOutcome.INSERTED:
            self._alerts.raise_alert(order)
        return outcome

    async def _stop_feed(self) -> None:
        if not self._feed_started:
            return
        self._feed_started = False
        try:
            await self._feed.stop()
            logger.info("Unsubscribed from order change feed")
        except Exception as e:
            logger.error(f"Error stopping order change feed: {e}")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._stop_feed()
        self.state = ListenerState.CLOSED
