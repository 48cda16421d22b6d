"""
Unit tests for Order, Reservation and Ticket entities

Test Coverage:
1. Order creation and number format
2. Order status transition table
3. Reservation quantity limits and liveness
4. Ticket usage state
"""

from datetime import datetime, timedelta, timezone
import re

import pytest

from src.service.ticketing.domain.entity.order_entity import Order, generate_order_number
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    InvalidRequestError,
    OrderStateError,
    TicketingErrorCode,
)
from test.service.ticketing.builders import make_billing_info, make_order


pytestmark = pytest.mark.unit


class TestOrder:
    def test_order_number_format(self):
        number = generate_order_number(datetime(2025, 1, 10, tzinfo=timezone.utc))

        assert re.fullmatch(r'ORD-20250110-\d{6}', number)

    def test_create_starts_pending_with_billing_details(self):
        order = make_order(total_amount=5000)

        assert order.status == OrderStatus.PENDING
        assert order.billing_email == 'buyer@test.com'
        assert order.can_be_cancelled
        assert not order.can_be_refunded

    def test_create_rejects_non_positive_total(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            Order.create(user_id=1, event_id=1, total_amount=0, billing_info=make_billing_info())

        assert exc_info.value.code == TicketingErrorCode.TOTAL_NOT_POSITIVE

    def test_complete_then_refund(self):
        order = make_order().complete(payment_id='pay_1')
        assert order.status == OrderStatus.COMPLETED
        assert order.payment_id == 'pay_1'

        refunded = order.refund()
        assert refunded.status == OrderStatus.REFUNDED

    def test_refund_requires_completed(self):
        with pytest.raises(OrderStateError) as exc_info:
            make_order().refund()

        assert exc_info.value.code == TicketingErrorCode.NOT_REFUNDABLE

    @pytest.mark.parametrize('terminal', ['cancel', 'refund'])
    def test_terminal_states_reject_further_transitions(self, terminal):
        order = make_order()
        order = order.cancel() if terminal == 'cancel' else order.complete(payment_id='p').refund()

        with pytest.raises(OrderStateError) as exc_info:
            order.complete(payment_id='again')

        assert exc_info.value.code == TicketingErrorCode.INVALID_TRANSITION

    def test_completed_order_cannot_be_cancelled(self):
        with pytest.raises(OrderStateError):
            make_order().complete(payment_id='p').cancel()


class TestReservation:
    @pytest.mark.parametrize(
        'quantity, code',
        [(0, TicketingErrorCode.QUANTITY_INVALID), (11, TicketingErrorCode.QUANTITY_EXCEEDS_MAX)],
    )
    def test_quantity_limits(self, quantity, code):
        with pytest.raises(InvalidRequestError) as exc_info:
            Reservation.create(ticket_type_id=1, quantity=quantity, user_id=2)

        assert exc_info.value.code == code

    def test_live_until_deadline(self):
        now = datetime.now(timezone.utc)
        reservation = Reservation.create(
            ticket_type_id=1, quantity=2, user_id=2, ttl=timedelta(minutes=15), now=now
        )

        assert reservation.expires_at == now + timedelta(minutes=15)
        assert reservation.is_live(now + timedelta(minutes=14))
        assert not reservation.is_live(now + timedelta(minutes=15))

    def test_terminal_status_is_not_live(self):
        reservation = Reservation.create(ticket_type_id=1, quantity=1, user_id=2)

        released = reservation.with_status(ReservationStatus.RELEASED)

        assert not released.is_live()
        assert ReservationStatus.RELEASED.is_terminal


class TestTicket:
    def test_mint_is_active(self):
        order = make_order()
        ticket = Ticket.mint(order_id=order.id, ticket_type_id=1, qr_code='TKT-x')

        assert ticket.can_be_used
        assert ticket.used_at is None

    def test_used_ticket_records_time(self):
        order = make_order()
        ticket = Ticket.mint(order_id=order.id, ticket_type_id=1, qr_code='TKT-x')

        used = ticket.with_status(TicketStatus.USED)

        assert used.is_used
        assert not used.can_be_used
        assert used.used_at is not None
