from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.driven_adapter.memory.in_memory_store import InMemoryStore


class InMemoryTicketRepo(ITicketRepo):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    async def get_by_id(self, *, ticket_id: UUID) -> Ticket | None:
        return self.store.tickets.get(ticket_id)

    async def get_by_qr_code(self, *, qr_code: str) -> Ticket | None:
        ticket_id = self.store.ticket_ids_by_qr.get(qr_code)
        return self.store.tickets.get(ticket_id) if ticket_id else None

    async def list_by_order(self, *, order_id: UUID) -> list[Ticket]:
        return [t for t in self.store.tickets.values() if t.order_id == order_id]

    async def list_by_user(self, *, user_id: int) -> list[Ticket]:
        order_ids = {o.id for o in self.store.orders.values() if o.user_id == user_id}
        return [t for t in self.store.tickets.values() if t.order_id in order_ids]

    async def list_by_event(self, *, event_id: int) -> list[Ticket]:
        order_ids = {o.id for o in self.store.orders.values() if o.event_id == event_id}
        tickets = [t for t in self.store.tickets.values() if t.order_id in order_ids]
        return sorted(tickets, key=lambda t: str(t.id), reverse=True)

    @Logger.io
    async def transition_status(
        self, *, ticket_id: UUID, expected: TicketStatus, new_status: TicketStatus
    ) -> Ticket | None:
        async with self.store.record_lock:
            current = self.store.tickets.get(ticket_id)
            if current is None or current.status != expected:
                return None
            updated = current.with_status(new_status)
            self.store.tickets[ticket_id] = updated
            return updated
