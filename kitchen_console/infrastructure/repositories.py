import logging
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, insert, update
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError

from kitchen_console.domain.models import Order, OrderStatus, Staff
from kitchen_console.infrastructure.db_schema import orders_tbl, staff_tbl
from kitchen_console.application.interfaces import OrderRepository, StaffRepository

logger = logging.getLogger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_all(self) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl).order_by(orders_tbl.c.created_at.desc())
        )
        orders = []
        for row in result.fetchall():
            try:
                orders.append(self._to_domain(row))
            except (ValidationError, ValueError) as e:
                logger.warning(f"Skipping unreadable order row {row.id}: {e}")
        return orders

    async def create(self, order: Order) -> None:
        values = dict(
            id=order.id,
            order_number=order.order_number,
            status=order.status.value,
            order_date=order.order_date,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            customer_notes=order.customer_notes,
            items=[item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in order.items],
            total=order.total,
            payment_method=order.payment_method.value if order.payment_method else None,
            rejected_reason=order.rejected_reason,
        )
        if order.created_at is not None:
            values["created_at"] = order.created_at
        await self._session.execute(insert(orders_tbl).values(**values))

    async def update_status(self, order_id: str, status: OrderStatus, rejected_reason: Optional[str] = None) -> bool:
        values = {"status": status.value, "updated_at": datetime.now(timezone.utc)}
        if rejected_reason is not None:
            values["rejected_reason"] = rejected_reason
        stmt = (
            update(orders_tbl)
            .where(
                orders_tbl.c.id == order_id,
                orders_tbl.c.status == OrderStatus.PENDING.value
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    def _to_domain(self, row) -> Order:
        """DB row → Domain"""
        return Order(
            id=row.id,
            order_number=row.order_number,
            status=OrderStatus(row.status),
            order_date=row.order_date,
            customer_name=row.customer_name,
            customer_phone=row.customer_phone,
            customer_address=row.customer_address,
            customer_notes=row.customer_notes,
            items=row.items or [],
            total=row.total,
            payment_method=row.payment_method,
            rejected_reason=row.rejected_reason,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyStaffRepository(StaffRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_username(self, username: str) -> Optional[tuple[Staff, str]]:
        result = await self._session.execute(
            select(staff_tbl).where(staff_tbl.c.username == username)
        )
        row = result.fetchone()
        if not row:
            return None
        staff = Staff(id=row.id, username=row.username, display_name=row.display_name)
        return staff, row.password_hash

    async def create(self, staff: Staff, password_hash: str) -> None:
        await self._session.execute(
            insert(staff_tbl).values(
                id=staff.id,
                username=staff.username,
                display_name=staff.display_name,
                password_hash=password_hash
            )
        )
