from abc import ABC, abstractmethod
from datetime import datetime

from uuid_utils import UUID

from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus


class IReservationRepo(ABC):
    @abstractmethod
    async def create(self, *, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        pass

    @abstractmethod
    async def list_expired_active(self, *, now: datetime, limit: int = 500) -> list[Reservation]:
        """Active reservations whose `expires_at` is at or before `now`"""
        pass

    @abstractmethod
    async def transition_status(
        self,
        *,
        reservation_id: UUID,
        expected: ReservationStatus,
        new_status: ReservationStatus,
    ) -> Reservation | None:
        """
        Compare-and-swap on reservation status

        Returns:
            The updated reservation, or None when the current status was not
            `expected` (another caller already moved it)
        """
        pass

    @abstractmethod
    async def release_reservation(
        self, *, reservation_id: UUID, new_status: ReservationStatus
    ) -> Reservation | None:
        """
        ACTIVE -> `new_status` (RELEASED or EXPIRED) and return the hold, atomically

        The status swap and the `held` decrement commit together or not at all,
        so a failure leaves the reservation ACTIVE for the next attempt.

        Returns:
            The ended reservation, or None when it was no longer ACTIVE

        Raises:
            InventoryError(LEDGER_UNDERFLOW): Ticket type holds fewer units than reserved
        """
        pass
