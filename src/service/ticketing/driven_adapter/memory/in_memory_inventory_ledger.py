from typing import Callable

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.error.ticketing_errors import TicketingNotFoundError
from src.service.ticketing.driven_adapter.memory.in_memory_store import InMemoryStore


class InMemoryInventoryLedger(IInventoryLedger):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    @Logger.io
    async def create_ticket_type(self, *, ticket_type: TicketType) -> TicketType:
        async with self.store.record_lock:
            if not ticket_type.id:
                ticket_type = attrs.evolve(ticket_type, id=self.store.next_ticket_type_id())
            self.store.ticket_types[ticket_type.id] = ticket_type
            return ticket_type

    async def get_ticket_type(self, *, ticket_type_id: int) -> TicketType | None:
        return self.store.ticket_types.get(ticket_type_id)

    async def list_ticket_types(self, *, event_id: int) -> list[TicketType]:
        types = [tt for tt in self.store.ticket_types.values() if tt.event_id == event_id]
        return sorted(types, key=lambda tt: tt.id)

    async def _apply(
        self, ticket_type_id: int, change: Callable[[TicketType], TicketType]
    ) -> TicketType:
        async with self.store.type_lock(ticket_type_id):
            current = self.store.ticket_types.get(ticket_type_id)
            if current is None:
                raise TicketingNotFoundError(f'Ticket type {ticket_type_id} not found')
            updated = change(current)
            self.store.ticket_types[ticket_type_id] = updated
            return updated

    @Logger.io
    async def try_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        return await self._apply(ticket_type_id, lambda tt: tt.with_hold(quantity))

    @Logger.io
    async def release_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        return await self._apply(ticket_type_id, lambda tt: tt.with_released_hold(quantity))

    @Logger.io
    async def commit_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        return await self._apply(ticket_type_id, lambda tt: tt.with_committed_hold(quantity))

    @Logger.io
    async def release_sold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        return await self._apply(ticket_type_id, lambda tt: tt.with_released_sold(quantity))
