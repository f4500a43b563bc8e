from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional
from kitchen_console.domain.models import ChangeEvent, Order, OrderStatus, Staff


class OrderRepository(ABC):
    @abstractmethod
    async def list_all(self) -> List[Order]:
        """All orders, newest created_at first."""

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def update_status(self, order_id: str, status: OrderStatus, rejected_reason: Optional[str] = None) -> bool:
        """Move a pending order to status; False when no pending row matched."""


class StaffRepository(ABC):
    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[tuple[Staff, str]]:
        """Staff identity together with its stored password hash."""

    @abstractmethod
    async def create(self, staff: Staff, password_hash: str) -> None:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def staff(self) -> StaffRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class NotificationsService(ABC):
    @abstractmethod
    async def send_order_accepted(self, order: Order) -> bool:
        pass


class ChangeFeed(ABC):
    """Push channel of order changes; iterate after start() to await the next event."""

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        pass


class RingPlayer(ABC):
    @abstractmethod
    async def play(self) -> None:
        pass


class PlatformNotifier(ABC):
    @abstractmethod
    async def notify(self, title: str, body: str) -> None:
        pass
