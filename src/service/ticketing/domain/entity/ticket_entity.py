from datetime import datetime, timezone
from typing import Optional

import attrs
import uuid_utils
from uuid_utils import UUID

from src.service.ticketing.domain.enum.ticket_status import TicketStatus


@attrs.define
class Ticket:
    id: UUID
    order_id: UUID
    ticket_type_id: int
    qr_code: str
    status: TicketStatus = TicketStatus.ACTIVE
    created_at: Optional[datetime] = None
    used_at: Optional[datetime] = None

    @classmethod
    def mint(cls, *, order_id: UUID, ticket_type_id: int, qr_code: str) -> 'Ticket':
        return cls(
            id=uuid_utils.uuid7(),
            order_id=order_id,
            ticket_type_id=ticket_type_id,
            qr_code=qr_code,
            status=TicketStatus.ACTIVE,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def can_be_used(self) -> bool:
        return self.status == TicketStatus.ACTIVE

    @property
    def is_used(self) -> bool:
        return self.status == TicketStatus.USED

    def with_status(self, status: TicketStatus) -> 'Ticket':
        used_at = datetime.now(timezone.utc) if status == TicketStatus.USED else self.used_at
        return attrs.evolve(self, status=status, used_at=used_at)
