"""
Unit tests for PurchaseTicketsUseCase

Test Coverage:
1. Selection / reservation validation (fails before anything is touched)
2. Successful ad-hoc and reservation purchases
3. Compensation chain: declined payment, minting failure, completion failure
4. Refund compensation failure surfaces as PURCHASE_FAILED
5. Notifications are best-effort
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.service.ticketing.app.command.purchase_tickets_use_case import PurchaseTicketsUseCase
from src.service.ticketing.app.dto.purchase_dto import PurchaseRequest
from src.service.ticketing.app.interface.i_payment_gateway import PaymentResult, RefundResult
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    InvalidRequestError,
    InventoryError,
    IssuanceError,
    PaymentError,
    TicketingErrorCode,
    TicketingNotFoundError,
)
from src.service.ticketing.domain.value_object.notification_payload import (
    NotificationKind,
)
from src.service.ticketing.domain.value_object.ticket_selection import TicketSelection
from test.service.ticketing.builders import (
    BUYER_ID,
    EVENT_ID,
    OTHER_BUYER_ID,
    make_billing_info,
    make_ticket_type,
)


pytestmark = pytest.mark.unit


def _payment(status: PaymentStatus = PaymentStatus.SUCCESS, amount: int = 5000) -> PaymentResult:
    return PaymentResult(
        payment_id='mock_pay_1',
        status=status,
        amount=amount,
        processed_at=datetime.now(timezone.utc),
        transaction_id='txn_1',
        error_message=None if status == PaymentStatus.SUCCESS else 'Card declined',
    )


def _refund(status: PaymentStatus = PaymentStatus.SUCCESS) -> RefundResult:
    return RefundResult(
        refund_id='mock_ref_1',
        status=status,
        amount=5000,
        processed_at=datetime.now(timezone.utc),
        error_message=None if status == PaymentStatus.SUCCESS else 'Gateway down',
    )


class _PurchaseTestBase:
    def setup_method(self):
        self.ticket_type = make_ticket_type(id=1, price=2500, capacity=100)

        self.inventory_ledger = AsyncMock()
        self.inventory_ledger.get_ticket_type.return_value = self.ticket_type
        self.inventory_ledger.try_hold.return_value = self.ticket_type

        self.reservation_repo = AsyncMock()
        self.order_repo = AsyncMock()
        self.order_repo.create.side_effect = lambda *, order: order
        self.order_repo.complete_order_and_issue_tickets.side_effect = (
            lambda *, order, tickets, quantities, reservation_id=None: order
        )

        self.payment_gateway = AsyncMock()
        self.payment_gateway.process_payment.return_value = _payment()
        self.payment_gateway.refund_payment.return_value = _refund()

        self.qr_code_generator = MagicMock()
        serial = count(1)
        self.qr_code_generator.generate.side_effect = (
            lambda *, order_id, ticket_type_id: f'TKT-{order_id}-{ticket_type_id}-{next(serial)}'
        )
        self.notification_sender = AsyncMock()

        self.use_case = PurchaseTicketsUseCase(
            inventory_ledger=self.inventory_ledger,
            reservation_repo=self.reservation_repo,
            order_repo=self.order_repo,
            payment_gateway=self.payment_gateway,
            qr_code_generator=self.qr_code_generator,
            notification_sender=self.notification_sender,
        )

    def _request(self, **overrides):
        values = {
            'user_id': BUYER_ID,
            'event_id': EVENT_ID,
            'billing_info': make_billing_info(),
            'payment_method': 'card',
            'selections': (TicketSelection(ticket_type_id=1, quantity=2),),
        }
        values.update(overrides)
        return PurchaseRequest(**values)

    def _reservation(self, *, user_id: int = BUYER_ID, quantity: int = 2, ttl_minutes: int = 15):
        reservation = Reservation.create(
            ticket_type_id=1,
            quantity=quantity,
            user_id=user_id,
            ttl=timedelta(minutes=ttl_minutes),
        )
        self.reservation_repo.get_by_id.return_value = reservation
        return reservation

    def _cancelled_orders(self) -> list:
        return [
            c.kwargs
            for c in self.order_repo.update_status.await_args_list
            if c.kwargs['new_status'] == OrderStatus.CANCELLED
        ]

    def _sent_kinds(self) -> list[NotificationKind]:
        return [c.kwargs['payload'].kind for c in self.notification_sender.send.await_args_list]


class TestPurchaseValidation(_PurchaseTestBase):
    @pytest.mark.asyncio
    async def test_zero_quantity_selections_are_skipped(self):
        request = self._request(
            selections=(
                TicketSelection(ticket_type_id=1, quantity=0),
                TicketSelection(ticket_type_id=1, quantity=-3),
            )
        )

        with pytest.raises(InvalidRequestError) as exc_info:
            await self.use_case.purchase(request=request)

        assert exc_info.value.code == TicketingErrorCode.NO_VALID_SELECTIONS
        self.inventory_ledger.try_hold.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_ticket_type(self):
        self.inventory_ledger.get_ticket_type.return_value = None

        with pytest.raises(TicketingNotFoundError):
            await self.use_case.purchase(request=self._request())

    @pytest.mark.asyncio
    async def test_ticket_type_of_another_event(self):
        self.inventory_ledger.get_ticket_type.return_value = make_ticket_type(event_id=999)

        with pytest.raises(InvalidRequestError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.TICKET_TYPE_EVENT_MISMATCH

    @pytest.mark.asyncio
    async def test_sale_not_started(self):
        now = datetime.now(timezone.utc)
        self.inventory_ledger.get_ticket_type.return_value = make_ticket_type(
            sale_start=now + timedelta(days=1), sale_end=now + timedelta(days=2)
        )

        with pytest.raises(InvalidRequestError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.SALE_NOT_STARTED

    @pytest.mark.asyncio
    async def test_requested_more_than_available(self):
        self.inventory_ledger.get_ticket_type.return_value = make_ticket_type(capacity=10, sold=9)

        with pytest.raises(InventoryError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.INSUFFICIENT_INVENTORY
        self.order_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_free_tickets_have_non_positive_total(self):
        self.inventory_ledger.get_ticket_type.return_value = make_ticket_type(price=0)

        with pytest.raises(InvalidRequestError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.TOTAL_NOT_POSITIVE

    @pytest.mark.asyncio
    async def test_reservation_of_another_user_is_forbidden(self):
        reservation = self._reservation(user_id=OTHER_BUYER_ID)

        with pytest.raises(AccessDeniedError):
            await self.use_case.purchase(
                request=self._request(reservation_id=reservation.id, selections=())
            )

    @pytest.mark.asyncio
    async def test_reservation_past_deadline_is_expired(self):
        reservation = self._reservation(ttl_minutes=-1)

        with pytest.raises(InventoryError) as exc_info:
            await self.use_case.purchase(
                request=self._request(reservation_id=reservation.id, selections=())
            )

        assert exc_info.value.code == TicketingErrorCode.RESERVATION_EXPIRED

    @pytest.mark.asyncio
    async def test_released_reservation_is_expired(self):
        reservation = self._reservation().with_status(ReservationStatus.RELEASED)
        self.reservation_repo.get_by_id.return_value = reservation

        with pytest.raises(InventoryError) as exc_info:
            await self.use_case.purchase(
                request=self._request(reservation_id=reservation.id, selections=())
            )

        assert exc_info.value.code == TicketingErrorCode.RESERVATION_EXPIRED

    @pytest.mark.asyncio
    async def test_selections_must_match_reservation(self):
        reservation = self._reservation(quantity=2)

        with pytest.raises(InvalidRequestError) as exc_info:
            await self.use_case.purchase(
                request=self._request(
                    reservation_id=reservation.id,
                    selections=(TicketSelection(ticket_type_id=1, quantity=3),),
                )
            )

        assert exc_info.value.code == TicketingErrorCode.RESERVATION_MISMATCH


class TestPurchaseSuccess(_PurchaseTestBase):
    @pytest.mark.asyncio
    async def test_ad_hoc_purchase_holds_charges_and_completes(self):
        result = await self.use_case.purchase(request=self._request())

        # Then: one hold, one charge for price x quantity, 2 tickets
        self.inventory_ledger.try_hold.assert_awaited_once_with(ticket_type_id=1, quantity=2)
        assert self.payment_gateway.process_payment.await_args.kwargs['amount'] == 5000
        assert len(result.tickets) == 2
        assert len({t.qr_code for t in result.tickets}) == 2
        assert result.order.status == OrderStatus.COMPLETED
        assert result.order.payment_id == 'mock_pay_1'

        complete_kwargs = self.order_repo.complete_order_and_issue_tickets.await_args.kwargs
        assert complete_kwargs['quantities'] == {1: 2}
        assert complete_kwargs['reservation_id'] is None

        self.payment_gateway.refund_payment.assert_not_called()
        self.inventory_ledger.release_hold.assert_not_called()
        assert self._sent_kinds() == [NotificationKind.ORDER_CONFIRMATION]

    @pytest.mark.asyncio
    async def test_duplicate_selections_are_merged(self):
        request = self._request(
            selections=(
                TicketSelection(ticket_type_id=1, quantity=1),
                TicketSelection(ticket_type_id=1, quantity=2),
            )
        )

        result = await self.use_case.purchase(request=request)

        self.inventory_ledger.try_hold.assert_awaited_once_with(ticket_type_id=1, quantity=3)
        assert len(result.tickets) == 3

    @pytest.mark.asyncio
    async def test_reservation_purchase_takes_no_new_hold(self):
        reservation = self._reservation(quantity=2)

        result = await self.use_case.purchase(
            request=self._request(reservation_id=reservation.id, selections=())
        )

        self.inventory_ledger.try_hold.assert_not_called()
        complete_kwargs = self.order_repo.complete_order_and_issue_tickets.await_args.kwargs
        assert complete_kwargs['reservation_id'] == reservation.id
        assert complete_kwargs['quantities'] == {1: 2}
        assert result.order.reservation_id == reservation.id

    @pytest.mark.asyncio
    async def test_confirmation_lists_ticket_type_names(self):
        await self.use_case.purchase(request=self._request())

        payload = self.notification_sender.send.await_args.kwargs['payload']
        assert {t.ticket_type_name for t in payload.tickets} == {'General Admission'}
        assert {t.price for t in payload.tickets} == {2500}

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_purchase(self):
        self.notification_sender.send.side_effect = ConnectionError('smtp down')

        result = await self.use_case.purchase(request=self._request())

        assert result.order.status == OrderStatus.COMPLETED


class TestPurchaseCompensation(_PurchaseTestBase):
    @pytest.mark.asyncio
    async def test_declined_payment_cancels_order_and_releases_hold(self):
        self.payment_gateway.process_payment.return_value = _payment(PaymentStatus.FAILED)

        with pytest.raises(PaymentError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.PAYMENT_FAILED
        self.payment_gateway.refund_payment.assert_not_called()
        self.inventory_ledger.release_hold.assert_awaited_once_with(ticket_type_id=1, quantity=2)
        assert len(self._cancelled_orders()) == 1
        assert self._sent_kinds() == [NotificationKind.ORDER_CANCELLATION]

    @pytest.mark.asyncio
    async def test_gateway_exception_is_payment_failed(self):
        self.payment_gateway.process_payment.side_effect = TimeoutError('gateway timeout')

        with pytest.raises(PaymentError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.PAYMENT_FAILED

    @pytest.mark.asyncio
    async def test_minting_failure_refunds_once_and_cancels(self):
        self.payment_gateway.process_payment.return_value = _payment(amount=7500)
        # Given: the third token generation fails
        tokens = iter(['TKT-a', 'TKT-b'])

        def generate(*, order_id, ticket_type_id):
            try:
                return next(tokens)
            except StopIteration:
                raise IssuanceError(TicketingErrorCode.TICKET_ISSUANCE_FAILED, 'no entropy')

        self.qr_code_generator.generate.side_effect = generate

        # When
        with pytest.raises(IssuanceError) as exc_info:
            await self.use_case.purchase(
                request=self._request(selections=(TicketSelection(ticket_type_id=1, quantity=3),))
            )

        # Then: exactly one refund, order cancelled, hold returned, nothing completed
        assert exc_info.value.code == TicketingErrorCode.TICKET_ISSUANCE_FAILED
        self.payment_gateway.refund_payment.assert_awaited_once_with(
            payment_id='mock_pay_1', amount=7500
        )
        assert len(self._cancelled_orders()) == 1
        self.inventory_ledger.release_hold.assert_awaited_once_with(ticket_type_id=1, quantity=3)
        self.order_repo.complete_order_and_issue_tickets.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_reservation_race_is_reservation_expired(self):
        reservation = self._reservation(quantity=2)
        self.order_repo.complete_order_and_issue_tickets.side_effect = InventoryError(
            TicketingErrorCode.RESERVATION_EXPIRED, 'swept'
        )

        with pytest.raises(InventoryError) as exc_info:
            await self.use_case.purchase(
                request=self._request(reservation_id=reservation.id, selections=())
            )

        # Then: money back, order cancelled, the reservation hold is left to expiry
        assert exc_info.value.code == TicketingErrorCode.RESERVATION_EXPIRED
        self.payment_gateway.refund_payment.assert_awaited_once()
        assert len(self._cancelled_orders()) == 1
        self.inventory_ledger.release_hold.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure_during_completion_is_issuance_failure(self):
        self.order_repo.complete_order_and_issue_tickets.side_effect = ConnectionError('db gone')

        with pytest.raises(IssuanceError) as exc_info:
            await self.use_case.purchase(request=self._request())

        assert exc_info.value.code == TicketingErrorCode.TICKET_ISSUANCE_FAILED
        self.payment_gateway.refund_payment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_refund_is_purchase_failed_with_reconciliation_details(self):
        self.order_repo.complete_order_and_issue_tickets.side_effect = ConnectionError('db gone')
        self.payment_gateway.refund_payment.return_value = _refund(PaymentStatus.FAILED)

        with pytest.raises(IssuanceError) as exc_info:
            await self.use_case.purchase(request=self._request())

        error = exc_info.value
        assert error.code == TicketingErrorCode.PURCHASE_FAILED
        assert 'mock_pay_1' in error.message
        assert 'db gone' in error.message
        assert 'Gateway down' in error.message
        # The rest of the chain still ran
        assert len(self._cancelled_orders()) == 1
        self.inventory_ledger.release_hold.assert_awaited_once()
