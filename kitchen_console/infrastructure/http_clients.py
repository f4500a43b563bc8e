import httpx
import logging
import asyncio
from typing import Optional

from kitchen_console.application.interfaces import NotificationsService
from kitchen_console.domain.exceptions import NotificationDispatchError
from kitchen_console.domain.models import Order

logger = logging.getLogger(__name__)

ESTIMATED_PREPARATION = "30-50"


def accepted_payload(order: Order) -> dict:
    return {
        "phone": order.customer_phone,
        "orderNumber": order.order_number,
        "items": [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in order.items],
        "total": str(order.total),
        "type": "accepted",
        "estimatedTime": ESTIMATED_PREPARATION,
    }


class HTTPNotificationsClient(NotificationsService):
    def __init__(
        self,
        base_url: str,
        api_token: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._base_url = base_url
        self._api_token = api_token
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._transport = transport

    async def send_order_accepted(self, order: Order) -> bool:
        """Ask the notification service to tell the customer the order was accepted, with retries"""
        payload = accepted_payload(order)
        for attempt in range(self._max_retries):
            try:
                async with httpx.AsyncClient(transport=self._transport) as client:
                    response = await client.post(
                        f"{self._base_url}/api/notifications/order",
                        json=payload,
                        headers={"X-API-Key": self._api_token},
                        timeout=10.0
                    )

                    if response.status_code in (200, 201, 202):
                        logger.info(f"Notification sent for {order.order_number} (attempt {attempt + 1})")
                        return True
                    else:
                        logger.warning(f"Notification service returned {response.status_code}")

            except httpx.HTTPError as e:
                logger.warning(f"Notification send failed (attempt {attempt + 1}/{self._max_retries}): {e}")

            # no pause after the last attempt
            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._retry_delay)

        raise NotificationDispatchError(
            f"Could not send notification for {order.order_number} after {self._max_retries} attempts"
        )
