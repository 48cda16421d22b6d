from datetime import datetime, timezone

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus


class ExpireReservationsUseCase:
    """
    Sweep ACTIVE reservations past their deadline back into inventory.

    Each reservation goes through the same ACTIVE -> EXPIRED compare-and-swap a
    purchase uses for ACTIVE -> CONSUMED, so a sweep racing a purchase can
    never both sell and release the same hold. The swap and the `held`
    decrement are one store operation; a reservation that fails to expire
    stays ACTIVE and is picked up by the next sweep.
    """

    def __init__(self, *, reservation_repo: IReservationRepo, batch_size: int = 500) -> None:
        self.reservation_repo = reservation_repo
        self.batch_size = batch_size

    @Logger.io
    async def expire(self, *, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        candidates = await self.reservation_repo.list_expired_active(
            now=now, limit=self.batch_size
        )

        expired_count = 0
        for candidate in candidates:
            try:
                expired = await self.reservation_repo.release_reservation(
                    reservation_id=candidate.id, new_status=ReservationStatus.EXPIRED
                )
            except Exception as e:
                # One bad reservation must not strand the rest of the batch
                Logger.base.error(
                    f'❌ [EXPIRE] Reservation {candidate.id} not expired, retrying next sweep: {e}'
                )
                continue
            if expired is None:
                continue
            metrics.record_release(reason=ReservationStatus.EXPIRED.value)
            expired_count += 1

        if expired_count:
            Logger.base.info(f'⏰ [EXPIRE] Returned {expired_count} expired reservations')
        return expired_count
