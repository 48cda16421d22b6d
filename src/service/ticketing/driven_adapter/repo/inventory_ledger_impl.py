"""
PostgreSQL Inventory Ledger

Every counter change is one conditional UPDATE ... RETURNING. The WHERE clause
carries the invariant (`sold + held + qty <= capacity`, `held >= qty`, ...), so
the row lock taken by the UPDATE serializes writers of the same ticket type and
a losing writer simply matches zero rows. No lock is held across calls.
"""

from typing import Any, AsyncContextManager, Callable

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.error.ticketing_errors import (
    InvalidRequestError,
    InventoryError,
    TicketingErrorCode,
    TicketingNotFoundError,
)
from src.service.ticketing.driven_adapter.model import TicketTypeModel
from src.service.ticketing.driven_adapter.repo.row_mapper import ticket_type_from_row


class InventoryLedgerImpl(IInventoryLedger):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def create_ticket_type(self, *, ticket_type: TicketType) -> TicketType:
        async with self.session_factory() as session:
            row = TicketTypeModel(
                event_id=ticket_type.event_id,
                name=ticket_type.name,
                description=ticket_type.description,
                price=ticket_type.price,
                capacity=ticket_type.capacity,
                sold=0,
                held=0,
                sale_start=ticket_type.sale_start,
                sale_end=ticket_type.sale_end,
            )
            if ticket_type.id:
                row.id = ticket_type.id
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return ticket_type_from_row(row)

    @Logger.io
    async def get_ticket_type(self, *, ticket_type_id: int) -> TicketType | None:
        async with self.session_factory() as session:
            row = await session.get(TicketTypeModel, ticket_type_id)
            return ticket_type_from_row(row) if row else None

    @Logger.io
    async def list_ticket_types(self, *, event_id: int) -> list[TicketType]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketTypeModel)
                .where(TicketTypeModel.event_id == event_id)
                .order_by(TicketTypeModel.id)
            )
            return [ticket_type_from_row(row) for row in result.scalars()]

    async def _conditional_update(
        self,
        *,
        ticket_type_id: int,
        guard: ColumnElement[bool],
        values: dict[str, Any],
    ) -> TicketType | None:
        async with self.session_factory() as session:
            result = await session.execute(
                update(TicketTypeModel)
                .where(TicketTypeModel.id == ticket_type_id, guard)
                .values(**values)
                .returning(TicketTypeModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            snapshot = ticket_type_from_row(row) if row else None
            await session.commit()
            return snapshot

    async def _require(self, ticket_type_id: int) -> TicketType:
        current = await self.get_ticket_type(ticket_type_id=ticket_type_id)
        if current is None:
            raise TicketingNotFoundError(f'Ticket type {ticket_type_id} not found')
        return current

    @Logger.io
    async def try_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        if quantity <= 0:
            raise InvalidRequestError(
                TicketingErrorCode.QUANTITY_INVALID, 'Quantity must be greater than 0'
            )
        model = TicketTypeModel
        updated = await self._conditional_update(
            ticket_type_id=ticket_type_id,
            guard=model.sold + model.held + quantity <= model.capacity,
            values={'held': model.held + quantity},
        )
        if updated is not None:
            return updated

        # Nothing matched: report why (the snapshot may already be stale, which is fine)
        current = await self._require(ticket_type_id)
        if current.is_sold_out:
            raise InventoryError(TicketingErrorCode.SOLD_OUT, f'{current.name} is sold out')
        raise InventoryError(
            TicketingErrorCode.INSUFFICIENT_INVENTORY,
            f'Only {current.available} {current.name} tickets available',
        )

    async def _guarded_decrement(
        self,
        *,
        ticket_type_id: int,
        quantity: int,
        guard: ColumnElement[bool],
        values: dict[str, Any],
        counter_name: str,
    ) -> TicketType:
        if quantity > 0:
            updated = await self._conditional_update(
                ticket_type_id=ticket_type_id, guard=guard, values=values
            )
            if updated is not None:
                return updated
        current = await self._require(ticket_type_id)
        raise InventoryError(
            TicketingErrorCode.LEDGER_UNDERFLOW,
            f'Cannot take {quantity} from {counter_name} of ticket type {current.id}',
        )

    @Logger.io
    async def release_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        model = TicketTypeModel
        return await self._guarded_decrement(
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            guard=model.held >= quantity,
            values={'held': model.held - quantity},
            counter_name='held',
        )

    @Logger.io
    async def commit_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        model = TicketTypeModel
        return await self._guarded_decrement(
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            guard=model.held >= quantity,
            values={'held': model.held - quantity, 'sold': model.sold + quantity},
            counter_name='held',
        )

    @Logger.io
    async def release_sold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        model = TicketTypeModel
        return await self._guarded_decrement(
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            guard=model.sold >= quantity,
            values={'sold': model.sold - quantity},
            counter_name='sold',
        )
