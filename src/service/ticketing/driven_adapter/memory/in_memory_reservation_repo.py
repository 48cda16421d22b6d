from datetime import datetime

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import TicketingNotFoundError
from src.service.ticketing.driven_adapter.memory.in_memory_store import InMemoryStore


class InMemoryReservationRepo(IReservationRepo):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        async with self.store.record_lock:
            self.store.reservations[reservation.id] = reservation
        return reservation

    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        return self.store.reservations.get(reservation_id)

    async def list_expired_active(self, *, now: datetime, limit: int = 500) -> list[Reservation]:
        expired = [
            r
            for r in self.store.reservations.values()
            if r.status == ReservationStatus.ACTIVE and r.expires_at <= now
        ]
        expired.sort(key=lambda r: r.expires_at)
        return expired[:limit]

    @Logger.io
    async def transition_status(
        self,
        *,
        reservation_id: UUID,
        expected: ReservationStatus,
        new_status: ReservationStatus,
    ) -> Reservation | None:
        async with self.store.record_lock:
            current = self.store.reservations.get(reservation_id)
            if current is None or current.status != expected:
                return None
            updated = current.with_status(new_status)
            self.store.reservations[reservation_id] = updated
            return updated

    @Logger.io
    async def release_reservation(
        self, *, reservation_id: UUID, new_status: ReservationStatus
    ) -> Reservation | None:
        store = self.store
        reservation = store.reservations.get(reservation_id)
        if reservation is None:
            return None

        # Same lock order as order completion: ticket type first, then records
        async with store.type_lock(reservation.ticket_type_id), store.record_lock:
            current = store.reservations.get(reservation_id)
            if current is None or current.status != ReservationStatus.ACTIVE:
                return None
            ticket_type = store.ticket_types.get(current.ticket_type_id)
            if ticket_type is None:
                raise TicketingNotFoundError(f'Ticket type {current.ticket_type_id} not found')

            released_type = ticket_type.with_released_hold(current.quantity)
            ended = current.with_status(new_status)
            store.ticket_types[released_type.id] = released_type
            store.reservations[reservation_id] = ended
            return ended
