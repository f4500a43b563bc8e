import logging
from typing import List

from kitchen_console.domain.models import Order
from kitchen_console.domain.exceptions import PersistenceFailureError

logger = logging.getLogger(__name__)


class LoadOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> List[Order]:
        try:
            async with self._uow() as uow:
                return await uow.orders.list_all()
        except Exception as e:
            logger.error(f"Error fetching orders: {e}")
            raise PersistenceFailureError.on_read(f"Could not load orders: {e}") from e
