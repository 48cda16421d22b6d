from typing import Optional

import attrs
from uuid_utils import UUID

from src.service.ticketing.app.interface.i_payment_gateway import PaymentResult
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.value_object.billing_info import BillingInfo
from src.service.ticketing.domain.value_object.ticket_selection import TicketSelection


@attrs.define(frozen=True)
class PurchaseRequest:
    user_id: int
    event_id: int
    billing_info: BillingInfo
    payment_method: str
    selections: tuple[TicketSelection, ...] = ()
    reservation_id: Optional[UUID] = None


@attrs.define(frozen=True)
class PurchaseLine:
    ticket_type: TicketType
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.ticket_type.price * self.quantity


@attrs.define(frozen=True)
class PurchaseResult:
    order: Order
    tickets: list[Ticket]
    payment: PaymentResult


@attrs.define(frozen=True)
class OrderWithTickets:
    order: Order
    tickets: list[Ticket]
