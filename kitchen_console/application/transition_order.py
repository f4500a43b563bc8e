import logging
from typing import Optional

from kitchen_console.application.background import DetachedTasks
from kitchen_console.application.interfaces import NotificationsService
from kitchen_console.application.order_store import OrderStore
from kitchen_console.domain.exceptions import (
    InvalidStateError, NotificationDispatchError, PersistenceFailureError
)
from kitchen_console.domain.models import Order, OrderStatus

logger = logging.getLogger(__name__)


class TransitionOrderUseCase:
    def __init__(
        self,
        unit_of_work,
        store: OrderStore,
        notifications_service: NotificationsService,
        tasks: DetachedTasks,
    ):
        self._uow = unit_of_work
        self._store = store
        self._notifications = notifications_service
        self._tasks = tasks

    async def __call__(self, order_id: str, target: OrderStatus, reason: Optional[str] = None) -> Order:
        order = self._store.get(order_id)
        if order is None:
            raise InvalidStateError(order_id, f"Order {order_id} is not in this session")
        if not order.can_transition_to(target):
            raise InvalidStateError(
                order_id, f"Order {order.order_number} cannot move from {order.status.value} to {target.value}"
            )

        rejected_reason = reason if target == OrderStatus.REJECTED else None
        logger.info(f"Order {order.order_number}: {order.status.value} -> {target.value}")

        try:
            async with self._uow() as uow:
                updated = await uow.orders.update_status(order_id, target, rejected_reason)
                await uow.commit()
        except Exception as e:
            logger.error(f"Status write failed for order {order_id}: {e}")
            raise PersistenceFailureError(order_id, f"Could not save order {order.order_number}: {e}") from e

        if not updated:
            # another client moved it first, or it is gone
            raise InvalidStateError(order_id, f"Order {order.order_number} is no longer pending")

        result = order.with_status(target, rejected_reason)
        self._store.ingest(result)

        if target == OrderStatus.PAID:
            self._tasks.spawn(self._send_accepted(result), name=f"accepted-{order_id}")

        return result

    async def _send_accepted(self, order: Order) -> None:
        if not order.customer_phone:
            logger.warning(f"Order {order.order_number} has no phone, accepted notification skipped")
            return
        # the status change is already saved; a failed send is only reported
        try:
            sent = await self._notifications.send_order_accepted(order)
        except NotificationDispatchError as e:
            logger.error(str(e))
            return
        except Exception as e:
            logger.error(f"Accepted notification for {order.order_number} failed: {e}")
            return
        if sent:
            logger.info(f"Sent accepted notification for {order.order_number}")
        else:
            logger.info(f"Accepted notification for {order.order_number} not sent")
