from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType


class TicketResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-6a10-7c4e-a9c5-123456789abc',
                'order_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'ticket_type_id': 1,
                'qr_code': 'TKT-01936d8f-5e73-7c4e-a9c5-123456789abc-1-1736505000-9f86d081884c7d659a2feaa0c55ad015',
                'status': 'active',
            }
        },
    }

    id: UtilsUUID7
    order_id: UtilsUUID7
    ticket_type_id: int
    qr_code: str
    status: str
    created_at: Optional[datetime] = None
    used_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        return cls(
            id=ticket.id,
            order_id=ticket.order_id,
            ticket_type_id=ticket.ticket_type_id,
            qr_code=ticket.qr_code,
            status=ticket.status.value,
            created_at=ticket.created_at,
            used_at=ticket.used_at,
        )


class TicketTypeResponse(BaseModel):
    id: int
    event_id: int
    name: str
    description: Optional[str] = None
    price: int
    capacity: int
    sold: int
    held: int
    available: int
    sale_start: datetime
    sale_end: datetime

    @classmethod
    def from_entity(cls, ticket_type: TicketType) -> 'TicketTypeResponse':
        return cls(
            id=ticket_type.id,
            event_id=ticket_type.event_id,
            name=ticket_type.name,
            description=ticket_type.description,
            price=ticket_type.price,
            capacity=ticket_type.capacity,
            sold=ticket_type.sold,
            held=ticket_type.held,
            available=ticket_type.available,
            sale_start=ticket_type.sale_start,
            sale_end=ticket_type.sale_end,
        )
