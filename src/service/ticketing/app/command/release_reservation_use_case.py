from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    TicketingNotFoundError,
)


class ReleaseReservationUseCase:
    """
    Give a reservation's tickets back before it expires.

    Idempotent: releasing a reservation that is already released, consumed or
    expired returns it unchanged and touches no counters. Only the caller that
    wins the ACTIVE -> RELEASED swap decrements `held`, in the same atomic
    store operation as the swap.
    """

    def __init__(self, *, reservation_repo: IReservationRepo) -> None:
        self.reservation_repo = reservation_repo

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
    ) -> Self:
        return cls(reservation_repo=reservation_repo)

    @Logger.io
    async def release(self, *, reservation_id: UUID, user_id: int | None = None) -> Reservation:
        reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise TicketingNotFoundError(f'Reservation {reservation_id} not found')
        if user_id is not None and reservation.user_id != user_id:
            raise AccessDeniedError('Only the holder can release this reservation')

        if not reservation.is_active:
            return reservation

        released = await self.reservation_repo.release_reservation(
            reservation_id=reservation_id, new_status=ReservationStatus.RELEASED
        )
        if released is None:
            # Lost the race to expiry / purchase / another release
            current = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
            return current or reservation

        metrics.record_release(reason=ReservationStatus.RELEASED.value)
        Logger.base.info(f'🔓 [RELEASE] {reservation_id}: returned {released.quantity} tickets')
        return released
