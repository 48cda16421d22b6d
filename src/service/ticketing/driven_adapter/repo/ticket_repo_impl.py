from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.driven_adapter.model import OrderModel, TicketModel
from src.service.ticketing.driven_adapter.repo.row_mapper import ticket_from_row, to_pg_uuid


class TicketRepoImpl(ITicketRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def get_by_id(self, *, ticket_id: UUID) -> Ticket | None:
        async with self.session_factory() as session:
            row = await session.get(TicketModel, to_pg_uuid(ticket_id))
            return ticket_from_row(row) if row else None

    @Logger.io
    async def get_by_qr_code(self, *, qr_code: str) -> Ticket | None:
        async with self.session_factory() as session:
            result = await session.execute(select(TicketModel).where(TicketModel.qr_code == qr_code))
            row = result.scalar_one_or_none()
            return ticket_from_row(row) if row else None

    @Logger.io
    async def list_by_order(self, *, order_id: UUID) -> list[Ticket]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketModel)
                .where(TicketModel.order_id == to_pg_uuid(order_id))
                .order_by(TicketModel.id)
            )
            return [ticket_from_row(row) for row in result.scalars()]

    @Logger.io
    async def list_by_user(self, *, user_id: int) -> list[Ticket]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketModel)
                .join(OrderModel, OrderModel.id == TicketModel.order_id)
                .where(OrderModel.user_id == user_id)
                .order_by(TicketModel.created_at.desc())
            )
            return [ticket_from_row(row) for row in result.scalars()]

    @Logger.io
    async def list_by_event(self, *, event_id: int) -> list[Ticket]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketModel)
                .join(OrderModel, OrderModel.id == TicketModel.order_id)
                .where(OrderModel.event_id == event_id)
                .order_by(TicketModel.created_at.desc())
            )
            return [ticket_from_row(row) for row in result.scalars()]

    @Logger.io
    async def transition_status(
        self, *, ticket_id: UUID, expected: TicketStatus, new_status: TicketStatus
    ) -> Ticket | None:
        values: dict[str, Any] = {'status': new_status.value}
        if new_status == TicketStatus.USED:
            values['used_at'] = datetime.now(timezone.utc)

        async with self.session_factory() as session:
            result = await session.execute(
                update(TicketModel)
                .where(TicketModel.id == to_pg_uuid(ticket_id), TicketModel.status == expected.value)
                .values(**values)
                .returning(TicketModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            updated = ticket_from_row(row) if row else None
            await session.commit()
            return updated
