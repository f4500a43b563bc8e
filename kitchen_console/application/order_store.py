import enum
import logging
import threading
from typing import Callable, Iterable, List, Optional, Tuple

from kitchen_console.domain.models import Order

logger = logging.getLogger(__name__)

Snapshot = Tuple[Order, ...]
StoreListener = Callable[[Snapshot], None]


class IngestOutcome(str, enum.Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class OrderStore:
    """Single source of truth for the orders of one kitchen session.

    Orders are kept newest-arrival first. Only ingest() and replace_all()
    mutate the collection; both run under the same lock as all(), so a
    snapshot is never produced from a half-applied mutation. Listeners are
    called after the lock is released with the snapshot that mutation produced.
    """

    def __init__(self, orders: Iterable[Order] = ()):
        self._lock = threading.RLock()
        self._orders: List[Order] = []
        self._positions: dict[str, int] = {}
        self._listeners: List[StoreListener] = []
        self._load(orders)

    def _load(self, orders: Iterable[Order]) -> None:
        self._orders = []
        self._positions = {}
        for order in orders:
            if order.id in self._positions:
                continue
            self._positions[order.id] = len(self._orders)
            self._orders.append(order)

    def ingest(self, order: Order) -> IngestOutcome:
        with self._lock:
            position = self._positions.get(order.id)
            if position is None:
                self._orders.insert(0, order)
                self._positions = {o.id: i for i, o in enumerate(self._orders)}
                outcome = IngestOutcome.INSERTED
            elif self._orders[position] == order:
                return IngestOutcome.UNCHANGED
            else:
                self._orders[position] = order
                outcome = IngestOutcome.UPDATED
            snapshot = tuple(self._orders)

        logger.debug(f"Order {order.id} {outcome.value}")
        self._notify(snapshot)
        return outcome

    def replace_all(self, orders: Iterable[Order]) -> None:
        with self._lock:
            self._load(orders)
            snapshot = tuple(self._orders)
        logger.debug(f"Store replaced with {len(snapshot)} orders")
        self._notify(snapshot)

    def all(self) -> Snapshot:
        with self._lock:
            return tuple(self._orders)

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            position = self._positions.get(order_id)
            return self._orders[position] if position is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: Snapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Store listener failed: {e}", exc_info=True)
