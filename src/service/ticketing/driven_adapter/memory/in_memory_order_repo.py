from datetime import datetime, timezone

import attrs
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
    TicketingNotFoundError,
)
from src.service.ticketing.driven_adapter.memory.in_memory_store import InMemoryStore


class InMemoryOrderRepo(IOrderRepo):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    @Logger.io
    async def create(self, *, order: Order) -> Order:
        async with self.store.record_lock:
            taken = {o.order_number for o in self.store.orders.values()}
            for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
                if order.order_number not in taken:
                    self.store.orders[order.id] = order
                    return order
                order = order.with_new_order_number()
        raise IssuanceError(
            TicketingErrorCode.ORDER_NUMBER_UNAVAILABLE,
            f'No free order number after {MAX_ORDER_NUMBER_ATTEMPTS} attempts',
        )

    async def get_by_id(self, *, order_id: UUID) -> Order | None:
        return self.store.orders.get(order_id)

    async def list_by_user(self, *, user_id: int) -> list[Order]:
        orders = [o for o in self.store.orders.values() if o.user_id == user_id]
        return sorted(orders, key=lambda o: str(o.id), reverse=True)

    @Logger.io
    async def update_status(
        self, *, order_id: UUID, expected: OrderStatus, new_status: OrderStatus
    ) -> Order | None:
        async with self.store.record_lock:
            current = self.store.orders.get(order_id)
            if current is None or current.status != expected:
                return None
            updated = attrs.evolve(current, status=new_status, updated_at=datetime.now(timezone.utc))
            self.store.orders[order_id] = updated
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
        store = self.store
        async with store.type_locks(quantities), store.record_lock:
            # Validate everything before the first write
            current = store.orders.get(order.id)
            if current is None:
                raise TicketingNotFoundError(f'Order {order.id} not found')
            if current.status != OrderStatus.PENDING:
                raise OrderStateError(
                    TicketingErrorCode.INVALID_TRANSITION,
                    f'Order {current.order_number} is {current.status}, expected pending',
                )

            reservation = store.reservations.get(reservation_id) if reservation_id else None
            if reservation_id and (
                reservation is None or reservation.status != ReservationStatus.ACTIVE
            ):
                raise InventoryError(
                    TicketingErrorCode.RESERVATION_EXPIRED,
                    f'Reservation {reservation_id} is no longer active',
                )

            committed_types = {}
            for ticket_type_id, quantity in quantities.items():
                ticket_type = store.ticket_types.get(ticket_type_id)
                if ticket_type is None:
                    raise TicketingNotFoundError(f'Ticket type {ticket_type_id} not found')
                committed_types[ticket_type_id] = ticket_type.with_committed_hold(quantity)

            if any(t.qr_code in store.ticket_ids_by_qr for t in tickets):
                raise ValueError('Duplicate ticket QR code')

            completed = attrs.evolve(
                current,
                status=OrderStatus.COMPLETED,
                payment_id=order.payment_id,
                updated_at=datetime.now(timezone.utc),
            )
            store.orders[order.id] = completed
            store.ticket_types.update(committed_types)
            for ticket in tickets:
                store.tickets[ticket.id] = ticket
                store.ticket_ids_by_qr[ticket.qr_code] = ticket.id
            if reservation is not None:
                store.reservations[reservation.id] = reservation.with_status(
                    ReservationStatus.CONSUMED
                )
            return completed
