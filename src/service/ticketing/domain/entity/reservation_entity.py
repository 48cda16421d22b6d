from datetime import datetime, timedelta, timezone

import attrs
import uuid_utils
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    InvalidRequestError,
    TicketingErrorCode,
)


DEFAULT_RESERVATION_TTL = timedelta(minutes=15)
DEFAULT_MAX_TICKETS_PER_RESERVATION = 10


@attrs.define
class Reservation:
    id: UUID
    ticket_type_id: int
    quantity: int
    user_id: int
    created_at: datetime
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.ACTIVE
    updated_at: datetime | None = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        ticket_type_id: int,
        quantity: int,
        user_id: int,
        ttl: timedelta = DEFAULT_RESERVATION_TTL,
        max_quantity: int = DEFAULT_MAX_TICKETS_PER_RESERVATION,
        now: datetime | None = None,
    ) -> 'Reservation':
        cls.validate_quantity(quantity, max_quantity=max_quantity)
        now = now or datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            user_id=user_id,
            created_at=now,
            expires_at=now + ttl,
            updated_at=now,
        )

    @staticmethod
    def validate_quantity(quantity: int, *, max_quantity: int) -> None:
        if quantity <= 0:
            raise InvalidRequestError(
                TicketingErrorCode.QUANTITY_INVALID, 'Quantity must be greater than 0'
            )
        if quantity > max_quantity:
            raise InvalidRequestError(
                TicketingErrorCode.QUANTITY_EXCEEDS_MAX,
                f'Maximum {max_quantity} tickets per reservation',
            )

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def is_live(self, now: datetime | None = None) -> bool:
        """Active and not yet past its deadline."""
        return self.is_active and not self.is_expired(now)

    def with_status(self, status: ReservationStatus) -> 'Reservation':
        return attrs.evolve(self, status=status, updated_at=datetime.now(timezone.utc))
