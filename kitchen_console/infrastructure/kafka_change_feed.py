import json
import logging
from typing import AsyncIterator, Optional
from aiokafka import AIOKafkaConsumer
from pydantic import ValidationError

from kitchen_console.application.interfaces import ChangeFeed
from kitchen_console.domain.models import ChangeEvent

logger = logging.getLogger(__name__)


def decode_change_event(raw: Optional[bytes]) -> Optional[ChangeEvent]:
    """Message value → ChangeEvent; None for anything that is not an order change"""
    if raw is None:
        logger.warning("Skipping order change message without a value")
        return None
    try:
        data = json.loads(raw.decode())
        return ChangeEvent.model_validate(data)
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
        logger.warning(f"Skipping undecodable order change: {e}")
        return None


class KafkaOrderChangeFeed(ChangeFeed):
    def __init__(self, bootstrap_servers: str, topic: str, group_id: Optional[str] = None):
        self._bootstrap_servers = bootstrap_servers
        self._topic = topic
        # no group by default: every session sees every change from now on
        self._group_id = group_id
        self._consumer: AIOKafkaConsumer | None = None

    async def start(self):
        self._consumer = AIOKafkaConsumer(
            self._topic,
            bootstrap_servers=self._bootstrap_servers,
            group_id=self._group_id,
            auto_offset_reset="latest",
        )
        try:
            await self._consumer.start()
        except Exception:
            consumer, self._consumer = self._consumer, None
            await consumer.stop()
            raise
        logger.info(f"Kafka consumer started on {self._topic}")

    async def stop(self):
        if self._consumer:
            await self._consumer.stop()
            self._consumer = None
            logger.info("Kafka consumer stopped")

    async def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        if self._consumer is None:
            raise RuntimeError("Change feed is not started")
        async for msg in self._consumer:
            event = decode_change_event(msg.value)
            if event is not None:
                yield event
