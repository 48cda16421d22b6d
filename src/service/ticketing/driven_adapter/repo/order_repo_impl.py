from datetime import datetime, timezone
from typing import AsyncContextManager, Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.domain.entity.order_entity import MAX_ORDER_NUMBER_ATTEMPTS, Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    InventoryError,
    IssuanceError,
    OrderStateError,
    TicketingErrorCode,
)
from src.service.ticketing.driven_adapter.model import (
    OrderModel,
    ReservationModel,
    TicketTypeModel,
)
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    order_from_row,
    order_to_row,
    ticket_to_row,
    to_pg_uuid,
)


# Postgres default name for UNIQUE (order_number) on orders
ORDER_NUMBER_CONSTRAINT = 'orders_order_number_key'


class OrderRepoImpl(IOrderRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, order: Order) -> Order:
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            try:
                async with self.session_factory() as session:
                    session.add(order_to_row(order))
                    await session.commit()
                return order
            except IntegrityError as e:
                if ORDER_NUMBER_CONSTRAINT not in str(e.orig):
                    raise
                Logger.base.warning(
                    f'⚠️ [ORDER] Order number {order.order_number} is taken, drawing another'
                )
                order = order.with_new_order_number()
        raise IssuanceError(
            TicketingErrorCode.ORDER_NUMBER_UNAVAILABLE,
            f'No free order number after {MAX_ORDER_NUMBER_ATTEMPTS} attempts',
        )

    @Logger.io
    async def get_by_id(self, *, order_id: UUID) -> Order | None:
        async with self.session_factory() as session:
            row = await session.get(OrderModel, to_pg_uuid(order_id))
            return order_from_row(row) if row else None

    @Logger.io
    async def list_by_user(self, *, user_id: int) -> list[Order]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc())
            )
            return [order_from_row(row) for row in result.scalars()]

    @Logger.io
    async def update_status(
        self, *, order_id: UUID, expected: OrderStatus, new_status: OrderStatus
    ) -> Order | None:
        async with self.session_factory() as session:
            result = await session.execute(
                update(OrderModel)
                .where(OrderModel.id == to_pg_uuid(order_id), OrderModel.status == expected.value)
                .values(status=new_status.value, updated_at=datetime.now(timezone.utc))
                .returning(OrderModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            updated = order_from_row(row) if row else None
            await session.commit()
            return updated

    @Logger.io
    async def complete_order_and_issue_tickets(
        self,
        *,
        order: Order,
        tickets: list[Ticket],
        quantities: dict[int, int],
        reservation_id: UUID | None = None,
    ) -> Order:
        """
        Single transaction: any raise inside `session.begin()` rolls every step back.

        Ledger rows are updated in ticket type id order so two completions
        touching the same types always lock rows in the same order.
        """
        now = datetime.now(timezone.utc)
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                update(OrderModel)
                .where(
                    OrderModel.id == to_pg_uuid(order.id),
                    OrderModel.status == OrderStatus.PENDING.value,
                )
                .values(
                    status=OrderStatus.COMPLETED.value,
                    payment_id=order.payment_id,
                    updated_at=now,
                )
                .returning(OrderModel)
                .execution_options(synchronize_session=False)
            )
            completed_row = result.scalar_one_or_none()
            if completed_row is None:
                raise OrderStateError(
                    TicketingErrorCode.INVALID_TRANSITION,
                    f'Order {order.order_number} is no longer pending',
                )
            completed = order_from_row(completed_row)

            if reservation_id is not None:
                consumed = await session.execute(
                    update(ReservationModel)
                    .where(
                        ReservationModel.id == to_pg_uuid(reservation_id),
                        ReservationModel.status == ReservationStatus.ACTIVE.value,
                    )
                    .values(status=ReservationStatus.CONSUMED.value, updated_at=now)
                    .returning(ReservationModel.id)
                    .execution_options(synchronize_session=False)
                )
                if consumed.scalar_one_or_none() is None:
                    raise InventoryError(
                        TicketingErrorCode.RESERVATION_EXPIRED,
                        f'Reservation {reservation_id} is no longer active',
                    )

            for ticket_type_id, quantity in sorted(quantities.items()):
                committed = await session.execute(
                    update(TicketTypeModel)
                    .where(
                        TicketTypeModel.id == ticket_type_id,
                        TicketTypeModel.held >= quantity,
                    )
                    .values(
                        held=TicketTypeModel.held - quantity,
                        sold=TicketTypeModel.sold + quantity,
                    )
                    .returning(TicketTypeModel.id)
                    .execution_options(synchronize_session=False)
                )
                if committed.scalar_one_or_none() is None:
                    raise InventoryError(
                        TicketingErrorCode.LEDGER_UNDERFLOW,
                        f'Ticket type {ticket_type_id} holds fewer than {quantity} tickets',
                    )

            session.add_all([ticket_to_row(ticket) for ticket in tickets])

        return completed
