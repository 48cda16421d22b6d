from datetime import datetime, timezone
from typing import AsyncContextManager, Callable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import InventoryError, TicketingErrorCode
from src.service.ticketing.driven_adapter.model import ReservationModel, TicketTypeModel
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    reservation_from_row,
    reservation_to_row,
    to_pg_uuid,
)


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        async with self.session_factory() as session:
            session.add(reservation_to_row(reservation))
            await session.commit()
        return reservation

    @Logger.io
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        async with self.session_factory() as session:
            row = await session.get(ReservationModel, to_pg_uuid(reservation_id))
            return reservation_from_row(row) if row else None

    @Logger.io
    async def list_expired_active(self, *, now: datetime, limit: int = 500) -> list[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel)
                .where(
                    ReservationModel.status == ReservationStatus.ACTIVE.value,
                    ReservationModel.expires_at <= now,
                )
                .order_by(ReservationModel.expires_at)
                .limit(limit)
            )
            return [reservation_from_row(row) for row in result.scalars()]

    @Logger.io
    async def transition_status(
        self,
        *,
        reservation_id: UUID,
        expected: ReservationStatus,
        new_status: ReservationStatus,
    ) -> Reservation | None:
        async with self.session_factory() as session:
            result = await session.execute(
                update(ReservationModel)
                .where(
                    ReservationModel.id == to_pg_uuid(reservation_id),
                    ReservationModel.status == expected.value,
                )
                .values(status=new_status.value, updated_at=datetime.now(timezone.utc))
                .returning(ReservationModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            updated = reservation_from_row(row) if row else None
            await session.commit()
            return updated

    @Logger.io
    async def release_reservation(
        self, *, reservation_id: UUID, new_status: ReservationStatus
    ) -> Reservation | None:
        """Both UPDATEs share one transaction; an underflow rolls the status back too."""
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                update(ReservationModel)
                .where(
                    ReservationModel.id == to_pg_uuid(reservation_id),
                    ReservationModel.status == ReservationStatus.ACTIVE.value,
                )
                .values(status=new_status.value, updated_at=datetime.now(timezone.utc))
                .returning(ReservationModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            ended = reservation_from_row(row)

            released = await session.execute(
                update(TicketTypeModel)
                .where(
                    TicketTypeModel.id == ended.ticket_type_id,
                    TicketTypeModel.held >= ended.quantity,
                )
                .values(held=TicketTypeModel.held - ended.quantity)
                .returning(TicketTypeModel.id)
                .execution_options(synchronize_session=False)
            )
            if released.scalar_one_or_none() is None:
                raise InventoryError(
                    TicketingErrorCode.LEDGER_UNDERFLOW,
                    f'Ticket type {ended.ticket_type_id} holds fewer than {ended.quantity} tickets',
                )
        return ended
