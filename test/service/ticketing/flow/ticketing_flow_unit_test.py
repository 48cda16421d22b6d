"""
Flow tests over the real in-memory adapters

Test Coverage:
1. Concurrent reservations never oversell
2. Expiry and release return holds exactly once
3. Reserve -> purchase -> refund keeps the ledger balanced
4. Failed payments unwind ad-hoc holds and cancel the order
5. A ticket can be scanned in exactly once and then blocks refunds
6. A failed expiry or release never strands a hold
7. A scan racing a refund never puts the admitted seat back on sale
8. Colliding order numbers are redrawn
"""

import asyncio
from datetime import datetime, timedelta, timezone

import attrs
import pytest

from src.service.ticketing.app.dto.purchase_dto import PurchaseRequest
from src.service.ticketing.domain.entity import order_entity
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    InventoryError,
    IssuanceError,
    OrderStateError,
    PaymentError,
    TicketingErrorCode,
    TicketRejectedError,
)
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.domain.value_object.ticket_selection import TicketSelection
from src.service.ticketing.driven_adapter.payment.mock_payment_gateway import (
    DECLINED_PAYMENT_METHOD,
)
from test.service.ticketing.builders import (
    BUYER_ID,
    EVENT_ID,
    OTHER_BUYER_ID,
    make_billing_info,
    make_ticket_type,
)


pytestmark = pytest.mark.unit


async def _seed(system, **kwargs):
    return await system.inventory_ledger.create_ticket_type(ticket_type=make_ticket_type(**kwargs))


async def _counters(system, ticket_type_id: int = 1) -> tuple[int, int, int]:
    ticket_type = await system.inventory_ledger.get_ticket_type(ticket_type_id=ticket_type_id)
    return ticket_type.sold, ticket_type.held, ticket_type.available


def _purchase_request(**overrides) -> PurchaseRequest:
    values = {
        'user_id': BUYER_ID,
        'event_id': EVENT_ID,
        'billing_info': make_billing_info(),
        'payment_method': 'card',
    }
    values.update(overrides)
    return PurchaseRequest(**values)


class TestReservationFlow:
    @pytest.mark.asyncio
    async def test_concurrent_reservations_never_oversell(self, system):
        # Given: 10 tickets and 25 buyers racing for one each
        await _seed(system, capacity=10)

        # When
        results = await asyncio.gather(
            *(
                system.reserve.reserve(ticket_type_id=1, quantity=1, user_id=user_id)
                for user_id in range(100, 125)
            ),
            return_exceptions=True,
        )

        # Then
        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 10
        assert all(
            isinstance(e, InventoryError) and e.code == TicketingErrorCode.SOLD_OUT for e in failed
        )
        assert await _counters(system) == (0, 10, 0)

    @pytest.mark.asyncio
    async def test_insufficient_inventory_leaves_counters_untouched(self, system):
        await _seed(system, capacity=3)

        with pytest.raises(InventoryError) as exc_info:
            await system.reserve.reserve(ticket_type_id=1, quantity=4, user_id=BUYER_ID)

        assert exc_info.value.code == TicketingErrorCode.INSUFFICIENT_INVENTORY
        assert await _counters(system) == (0, 0, 3)

    @pytest.mark.asyncio
    async def test_expiry_returns_hold(self, system):
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=4, user_id=BUYER_ID)

        expired = await system.expire.expire(now=reservation.expires_at + timedelta(seconds=1))

        assert expired == 1
        assert await _counters(system) == (0, 0, 10)
        stored = await system.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.status == ReservationStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_sweep_ignores_live_reservations(self, system):
        await _seed(system, capacity=10)
        await system.reserve.reserve(ticket_type_id=1, quantity=2, user_id=BUYER_ID)

        assert await system.expire.expire() == 0
        assert await _counters(system) == (0, 2, 8)

    @pytest.mark.asyncio
    async def test_release_twice_returns_hold_once(self, system):
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=3, user_id=BUYER_ID)

        first = await system.release.release(reservation_id=reservation.id, user_id=BUYER_ID)
        second = await system.release.release(reservation_id=reservation.id, user_id=BUYER_ID)

        assert first.status == second.status == ReservationStatus.RELEASED
        assert await _counters(system) == (0, 0, 10)

    @pytest.mark.asyncio
    async def test_release_racing_expiry_returns_hold_once(self, system):
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=3, user_id=BUYER_ID)

        await asyncio.gather(
            system.release.release(reservation_id=reservation.id),
            system.expire.expire(now=reservation.expires_at + timedelta(seconds=1)),
        )

        stored = await system.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.status in (ReservationStatus.RELEASED, ReservationStatus.EXPIRED)
        assert await _counters(system) == (0, 0, 10)

    @pytest.mark.asyncio
    async def test_failed_expiry_keeps_hold_for_next_sweep(self, system, monkeypatch):
        # Given: two expired reservations and a store that fails the first expiry once
        await _seed(system, capacity=10)
        first = await system.reserve.reserve(ticket_type_id=1, quantity=3, user_id=BUYER_ID)
        second = await system.reserve.reserve(
            ticket_type_id=1, quantity=2, user_id=OTHER_BUYER_ID
        )
        release_reservation = system.reservation_repo.release_reservation
        failing_ids = {first.id}

        async def flaky_release(*, reservation_id, new_status):
            if reservation_id in failing_ids:
                failing_ids.discard(reservation_id)
                raise ConnectionError('connection reset')
            return await release_reservation(reservation_id=reservation_id, new_status=new_status)

        monkeypatch.setattr(system.reservation_repo, 'release_reservation', flaky_release)
        later = second.expires_at + timedelta(seconds=1)

        # When
        swept = await system.expire.expire(now=later)

        # Then: the failed reservation still owns its hold
        assert swept == 1
        stored = await system.reservation_repo.get_by_id(reservation_id=first.id)
        assert stored.status == ReservationStatus.ACTIVE
        assert await _counters(system) == (0, 3, 7)

        # When: the next sweep runs, the hold comes back
        assert await system.expire.expire(now=later) == 1
        assert await _counters(system) == (0, 0, 10)

    @pytest.mark.asyncio
    async def test_release_that_cannot_return_hold_stays_active(self, system):
        # Given: the ledger holds fewer units than the reservation
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=3, user_id=BUYER_ID)
        system.store.ticket_types[1] = attrs.evolve(system.store.ticket_types[1], held=1)

        # When
        with pytest.raises(InventoryError) as exc_info:
            await system.release.release(reservation_id=reservation.id)

        # Then: neither the status nor the counters moved
        assert exc_info.value.code == TicketingErrorCode.LEDGER_UNDERFLOW
        stored = await system.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.status == ReservationStatus.ACTIVE
        assert await _counters(system) == (0, 1, 9)


class TestPurchaseFlow:
    @pytest.mark.asyncio
    async def test_reserve_purchase_refund_round_trip(self, system):
        # Given: 100 tickets at 25.00
        await _seed(system, capacity=100, price=2500)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=2, user_id=BUYER_ID)
        assert await _counters(system) == (0, 2, 98)

        # When: the reservation is purchased
        result = await system.purchase.purchase(
            request=_purchase_request(reservation_id=reservation.id)
        )

        # Then
        assert result.order.status == OrderStatus.COMPLETED
        assert result.order.total_amount == 5000
        assert len(result.tickets) == 2
        assert all(t.status == TicketStatus.ACTIVE for t in result.tickets)
        assert len({t.qr_code for t in result.tickets}) == 2
        assert await _counters(system) == (2, 0, 98)
        stored = await system.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.status == ReservationStatus.CONSUMED
        assert system.notification_sender.outbox[-1][1].subject.startswith('Order confirmation')

        # When: the buyer refunds it
        refund = await system.refund.refund(
            order_id=result.order.id, requester=Requester(user_id=BUYER_ID)
        )

        # Then
        assert refund.amount == 5000
        order = await system.order_repo.get_by_id(order_id=result.order.id)
        assert order.status == OrderStatus.REFUNDED
        tickets = await system.ticket_repo.list_by_order(order_id=result.order.id)
        assert {t.status for t in tickets} == {TicketStatus.REFUNDED}
        assert await _counters(system) == (0, 0, 100)

    @pytest.mark.asyncio
    async def test_adhoc_purchase_across_ticket_types(self, system):
        await _seed(system, id=1, capacity=10, price=2500)
        await _seed(system, id=2, name='VIP', capacity=5, price=12000)

        result = await system.purchase.purchase(
            request=_purchase_request(
                selections=(
                    TicketSelection(ticket_type_id=2, quantity=1),
                    TicketSelection(ticket_type_id=1, quantity=2),
                )
            )
        )

        assert result.order.total_amount == 2 * 2500 + 12000
        assert sorted(t.ticket_type_id for t in result.tickets) == [1, 1, 2]
        assert await _counters(system, 1) == (2, 0, 8)
        assert await _counters(system, 2) == (1, 0, 4)

    @pytest.mark.asyncio
    async def test_declined_adhoc_purchase_unwinds_hold(self, system):
        await _seed(system, capacity=10)

        with pytest.raises(PaymentError) as exc_info:
            await system.purchase.purchase(
                request=_purchase_request(
                    selections=(TicketSelection(ticket_type_id=1, quantity=3),),
                    payment_method=DECLINED_PAYMENT_METHOD,
                )
            )

        assert exc_info.value.code == TicketingErrorCode.PAYMENT_FAILED
        assert await _counters(system) == (0, 0, 10)
        orders = await system.order_repo.list_by_user(user_id=BUYER_ID)
        assert [o.status for o in orders] == [OrderStatus.CANCELLED]
        assert not system.store.tickets
        assert system.notification_sender.outbox[-1][1].subject.startswith('Order cancelled')

    @pytest.mark.asyncio
    async def test_declined_reservation_purchase_keeps_reservation(self, system):
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=2, user_id=BUYER_ID)

        with pytest.raises(PaymentError):
            await system.purchase.purchase(
                request=_purchase_request(
                    reservation_id=reservation.id, payment_method=DECLINED_PAYMENT_METHOD
                )
            )

        stored = await system.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.status == ReservationStatus.ACTIVE
        assert await _counters(system) == (0, 2, 8)

    @pytest.mark.asyncio
    async def test_expired_reservation_cannot_be_purchased(self, system):
        await _seed(system, capacity=10)
        reservation = await system.reserve.reserve(ticket_type_id=1, quantity=2, user_id=BUYER_ID)
        await system.expire.expire(now=datetime.now(timezone.utc) + timedelta(hours=1))

        with pytest.raises(InventoryError) as exc_info:
            await system.purchase.purchase(
                request=_purchase_request(reservation_id=reservation.id)
            )

        assert exc_info.value.code == TicketingErrorCode.RESERVATION_EXPIRED
        assert await _counters(system) == (0, 0, 10)


class TestTicketEntryFlow:
    async def _purchase_one(self, system):
        await _seed(system, capacity=10)
        result = await system.purchase.purchase(
            request=_purchase_request(selections=(TicketSelection(ticket_type_id=1, quantity=1),))
        )
        return result.order, result.tickets[0]

    @pytest.mark.asyncio
    async def test_double_scan_admits_once(self, system):
        _, ticket = await self._purchase_one(system)

        results = await asyncio.gather(
            system.use_ticket.mark_used(qr_code=ticket.qr_code, event_id=EVENT_ID),
            system.use_ticket.mark_used(qr_code=ticket.qr_code, event_id=EVENT_ID),
            return_exceptions=True,
        )

        admitted = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, TicketRejectedError)]
        assert len(admitted) == 1
        assert len(rejected) == 1
        assert rejected[0].code == TicketingErrorCode.NOT_USABLE
        stored = await system.ticket_repo.get_by_id(ticket_id=ticket.id)
        assert stored.status == TicketStatus.USED

    @pytest.mark.asyncio
    async def test_used_ticket_blocks_refund(self, system):
        order, ticket = await self._purchase_one(system)
        await system.use_ticket.mark_used(qr_code=ticket.qr_code, event_id=EVENT_ID)

        with pytest.raises(OrderStateError) as exc_info:
            await system.refund.refund(order_id=order.id, requester=Requester(user_id=BUYER_ID))

        assert exc_info.value.code == TicketingErrorCode.USED_TICKETS_PRESENT
        assert await _counters(system) == (1, 0, 9)

    @pytest.mark.asyncio
    async def test_scan_during_refund_keeps_admitted_seat_sold(self, system, monkeypatch):
        # Given: a two-ticket order whose first ticket is scanned while the refund is in flight
        await _seed(system, capacity=10)
        result = await system.purchase.purchase(
            request=_purchase_request(selections=(TicketSelection(ticket_type_id=1, quantity=2),))
        )
        scanned, untouched = result.tickets
        gateway = system.refund.payment_gateway
        refund_payment = gateway.refund_payment

        async def refund_while_scanning(*, payment_id, amount):
            await system.use_ticket.mark_used(qr_code=scanned.qr_code, event_id=EVENT_ID)
            return await refund_payment(payment_id=payment_id, amount=amount)

        monkeypatch.setattr(gateway, 'refund_payment', refund_while_scanning)

        # When
        await system.refund.refund(order_id=result.order.id, requester=Requester(user_id=BUYER_ID))

        # Then: the admitted seat stays sold, the other one goes back on sale
        admitted = await system.ticket_repo.get_by_id(ticket_id=scanned.id)
        refunded = await system.ticket_repo.get_by_id(ticket_id=untouched.id)
        assert admitted.status == TicketStatus.USED
        assert refunded.status == TicketStatus.REFUNDED
        assert await _counters(system) == (1, 0, 9)

    @pytest.mark.asyncio
    async def test_refunded_order_stops_admitting(self, system):
        # Given: an ACTIVE ticket left behind in a refunded order
        order, ticket = await self._purchase_one(system)
        await system.order_repo.update_status(
            order_id=order.id, expected=OrderStatus.COMPLETED, new_status=OrderStatus.REFUNDED
        )

        # When
        with pytest.raises(TicketRejectedError) as exc_info:
            await system.use_ticket.mark_used(qr_code=ticket.qr_code, event_id=EVENT_ID)

        # Then
        assert exc_info.value.code == TicketingErrorCode.NOT_USABLE
        stored = await system.ticket_repo.get_by_id(ticket_id=ticket.id)
        assert stored.status == TicketStatus.ACTIVE


class TestOrderNumbers:
    @pytest.mark.asyncio
    async def test_colliding_order_number_is_redrawn(self, system, monkeypatch):
        # Given: the second order draws the same suffix as the first
        await _seed(system, capacity=10)
        suffixes = iter([42, 42, 7])
        monkeypatch.setattr(order_entity.secrets, 'randbelow', lambda _: next(suffixes))
        one_ticket = (TicketSelection(ticket_type_id=1, quantity=1),)

        # When
        first = await system.purchase.purchase(request=_purchase_request(selections=one_ticket))
        second = await system.purchase.purchase(request=_purchase_request(selections=one_ticket))

        # Then
        assert first.order.order_number.endswith('-000042')
        assert second.order.order_number.endswith('-000007')
        stored = await system.order_repo.get_by_id(order_id=second.order.id)
        assert stored.order_number == second.order.order_number

    @pytest.mark.asyncio
    async def test_exhausted_order_numbers_fail_with_a_code(self, system, monkeypatch):
        # Given: every draw lands on a taken number
        await _seed(system, capacity=10)
        monkeypatch.setattr(order_entity.secrets, 'randbelow', lambda _: 42)
        one_ticket = (TicketSelection(ticket_type_id=1, quantity=1),)
        await system.purchase.purchase(request=_purchase_request(selections=one_ticket))

        # When
        with pytest.raises(IssuanceError) as exc_info:
            await system.purchase.purchase(request=_purchase_request(selections=one_ticket))

        # Then: the ad-hoc hold of the failed purchase is given back
        assert exc_info.value.code == TicketingErrorCode.ORDER_NUMBER_UNAVAILABLE
        assert await _counters(system) == (1, 0, 9)
