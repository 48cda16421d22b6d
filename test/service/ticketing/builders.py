"""Shared builders for ticketing tests."""

from datetime import datetime, timedelta, timezone

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.value_object.billing_info import BillingInfo


EVENT_ID = 1
BUYER_ID = 2
OTHER_BUYER_ID = 3
ADMIN_ID = 99


def make_ticket_type(
    *,
    id: int = 1,
    event_id: int = EVENT_ID,
    name: str = 'General Admission',
    price: int = 2500,
    capacity: int = 100,
    sold: int = 0,
    held: int = 0,
    sale_start: datetime | None = None,
    sale_end: datetime | None = None,
) -> TicketType:
    now = datetime.now(timezone.utc)
    return TicketType(
        id=id,
        event_id=event_id,
        name=name,
        price=price,
        capacity=capacity,
        sold=sold,
        held=held,
        sale_start=sale_start or now - timedelta(hours=1),
        sale_end=sale_end or now + timedelta(days=7),
        created_at=now,
    )


def make_billing_info(**overrides: str) -> BillingInfo:
    values = {'email': 'buyer@test.com', 'name': 'Test Buyer', 'card_token': 'tok_visa_4242'}
    values.update(overrides)
    return BillingInfo(**values)


def make_order(*, user_id: int = BUYER_ID, total_amount: int = 5000) -> Order:
    return Order.create(
        user_id=user_id,
        event_id=EVENT_ID,
        total_amount=total_amount,
        billing_info=make_billing_info(),
    )
