"""
Process-local storage shared by the in-memory adapters.

Ledger counters are guarded by one asyncio.Lock per ticket type, so holds on
different ticket types never wait on each other. Reservation, order and ticket
rows share a single record lock; every mutation under it is a short
check-then-write with no awaits in between.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager

from uuid_utils import UUID

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType


class InMemoryStore:
    def __init__(self) -> None:
        self.ticket_types: dict[int, TicketType] = {}
        self.reservations: dict[UUID, Reservation] = {}
        self.orders: dict[UUID, Order] = {}
        self.tickets: dict[UUID, Ticket] = {}
        self.ticket_ids_by_qr: dict[str, UUID] = {}
        self.record_lock = asyncio.Lock()
        self._type_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def next_ticket_type_id(self) -> int:
        return max(self.ticket_types, default=0) + 1

    def type_lock(self, ticket_type_id: int) -> asyncio.Lock:
        return self._type_locks[ticket_type_id]

    @asynccontextmanager
    async def type_locks(self, ticket_type_ids: Iterable[int]) -> AsyncIterator[None]:
        """Acquire several ticket-type locks in id order (deadlock free)."""
        async with AsyncExitStack() as stack:
            for ticket_type_id in sorted(set(ticket_type_ids)):
                await stack.enter_async_context(self.type_lock(ticket_type_id))
            yield

    def clear(self) -> None:
        self.ticket_types.clear()
        self.reservations.clear()
        self.orders.clear()
        self.tickets.clear()
        self.ticket_ids_by_qr.clear()
