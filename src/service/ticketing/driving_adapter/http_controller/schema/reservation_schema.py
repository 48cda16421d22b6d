from datetime import datetime

from pydantic import BaseModel, Field

from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.ticketing.domain.entity.reservation_entity import Reservation


class ReservationCreateRequest(BaseModel):
    model_config = {'json_schema_extra': {'example': {'ticket_type_id': 1, 'quantity': 2}}}

    ticket_type_id: int
    quantity: int


class ReservationResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'ticket_type_id': 1,
                'quantity': 2,
                'user_id': 2,
                'status': 'active',
                'created_at': '2025-01-10T10:30:00Z',
                'expires_at': '2025-01-10T10:45:00Z',
            }
        },
    }

    id: UtilsUUID7
    ticket_type_id: int
    quantity: int
    user_id: int
    status: str
    created_at: datetime
    expires_at: datetime
    seconds_remaining: int = Field(default=0, ge=0)

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        remaining = 0
        if reservation.is_active:
            remaining = max(
                int((reservation.expires_at - datetime.now(reservation.expires_at.tzinfo)).total_seconds()),
                0,
            )
        return cls(
            id=reservation.id,
            ticket_type_id=reservation.ticket_type_id,
            quantity=reservation.quantity,
            user_id=reservation.user_id,
            status=reservation.status.value,
            created_at=reservation.created_at,
            expires_at=reservation.expires_at,
            seconds_remaining=remaining,
        )
