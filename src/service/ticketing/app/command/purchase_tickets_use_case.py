import time
from datetime import datetime, timezone
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.platform.saga.saga_runner import SagaRunner, SagaStepStatus
from src.service.ticketing.app.dto.purchase_dto import (
    PurchaseLine,
    PurchaseRequest,
    PurchaseResult,
)
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_notification import INotificationSender
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.app.interface.i_payment_gateway import (
    IPaymentGateway,
    PaymentResult,
)
from src.service.ticketing.app.interface.i_qr_code_generator import IQrCodeGenerator
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    InvalidRequestError,
    InventoryError,
    IssuanceError,
    PaymentError,
    TicketingError,
    TicketingErrorCode,
    TicketingNotFoundError,
)
from src.service.ticketing.domain.value_object.notification_payload import (
    NotificationPayload,
    NotificationTicket,
    OrderCancellationNotification,
    OrderConfirmationNotification,
)


tracer = trace.get_tracer(__name__)

STEP_CREATE_ORDER = 'create_order'
STEP_CHARGE_PAYMENT = 'charge_payment'
STEP_MINT_TICKETS = 'mint_tickets'
STEP_COMPLETE_ORDER = 'complete_order'


class PurchaseTicketsUseCase:
    """
    Turn a selection (or an active reservation) into a paid order with tickets.

    Saga steps, each paired with its undo:
    1. hold            (ad-hoc only)   -> release_hold
    2. create_order    (PENDING)       -> PENDING -> CANCELLED
    3. charge_payment                  -> refund_payment
    4. mint_tickets                    (pure, nothing to undo)
    5. complete_order  (one atomic store operation: order COMPLETED, tickets
                        inserted, holds committed, reservation CONSUMED)

    A failure anywhere unwinds the completed steps newest-first. The ledger is
    never locked across the payment round trip.
    """

    def __init__(
        self,
        *,
        inventory_ledger: IInventoryLedger,
        reservation_repo: IReservationRepo,
        order_repo: IOrderRepo,
        payment_gateway: IPaymentGateway,
        qr_code_generator: IQrCodeGenerator,
        notification_sender: INotificationSender,
    ) -> None:
        self.inventory_ledger = inventory_ledger
        self.reservation_repo = reservation_repo
        self.order_repo = order_repo
        self.payment_gateway = payment_gateway
        self.qr_code_generator = qr_code_generator
        self.notification_sender = notification_sender

    @classmethod
    @inject
    def depends(
        cls,
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        qr_code_generator: IQrCodeGenerator = Depends(Provide[Container.qr_code_generator]),
        notification_sender: INotificationSender = Depends(
            Provide[Container.notification_sender]
        ),
    ) -> Self:
        return cls(
            inventory_ledger=inventory_ledger,
            reservation_repo=reservation_repo,
            order_repo=order_repo,
            payment_gateway=payment_gateway,
            qr_code_generator=qr_code_generator,
            notification_sender=notification_sender,
        )

    @Logger.io
    async def purchase(self, *, request: PurchaseRequest) -> PurchaseResult:
        started = time.perf_counter()
        with tracer.start_as_current_span('use_case.purchase_tickets') as span:
            span.set_attribute('event_id', request.event_id)
            span.set_attribute('user_id', request.user_id)
            span.set_attribute('with_reservation', request.reservation_id is not None)
            try:
                result = await self._purchase(request)
            except TicketingError as e:
                span.set_attribute('error.code', e.code.value)
                metrics.record_purchase(
                    event_id=request.event_id,
                    result=e.code.value,
                    duration=time.perf_counter() - started,
                )
                raise

            span.set_attribute('order.id', str(result.order.id))
            metrics.record_purchase(
                event_id=request.event_id,
                result='success',
                duration=time.perf_counter() - started,
            )
            metrics.record_tickets_issued(event_id=request.event_id, count=len(result.tickets))

        Logger.base.info(
            f'✅ [PURCHASE] Order {result.order.order_number} completed: '
            f'{len(result.tickets)} tickets, total {result.order.total_amount}'
        )
        return result

    # ========== Orchestration ==========

    async def _purchase(self, request: PurchaseRequest) -> PurchaseResult:
        reservation: Reservation | None = None
        if request.reservation_id is not None:
            reservation = await self._load_reservation(request)
            lines = await self._lines_for_reservation(request, reservation)
        else:
            lines = await self._lines_for_selections(request)

        total = sum(line.subtotal for line in lines)
        if total <= 0:
            raise InvalidRequestError(
                TicketingErrorCode.TOTAL_NOT_POSITIVE, 'Order total must be greater than 0'
            )

        saga = SagaRunner(name='purchase')
        order: Order | None = None
        payment: PaymentResult | None = None
        try:
            if reservation is None:
                for line in lines:
                    await self._hold_step(saga, line)

            order = await saga.step(
                STEP_CREATE_ORDER,
                lambda: self.order_repo.create(
                    order=Order.create(
                        user_id=request.user_id,
                        event_id=request.event_id,
                        total_amount=total,
                        billing_info=request.billing_info,
                        reservation_id=request.reservation_id,
                    )
                ),
                compensation=self._cancel_order,
            )
            payment = await saga.step(
                STEP_CHARGE_PAYMENT,
                lambda: self._charge(request, total),
                compensation=self._refund_payment,
            )
            tickets = await saga.step(STEP_MINT_TICKETS, lambda: self._mint(order, lines))
            completed = await saga.step(
                STEP_COMPLETE_ORDER,
                lambda: self.order_repo.complete_order_and_issue_tickets(
                    order=order.complete(payment_id=payment.payment_id),
                    tickets=tickets,
                    quantities={line.ticket_type.id: line.quantity for line in lines},
                    reservation_id=request.reservation_id,
                ),
            )
        except Exception as e:
            raise await self._unwind(saga, e, order, payment) from e

        result = PurchaseResult(order=completed, tickets=tickets, payment=payment)
        await self._notify(self._confirmation(result, lines))
        return result

    async def _hold_step(self, saga: SagaRunner, line: PurchaseLine) -> None:
        ticket_type_id = line.ticket_type.id
        quantity = line.quantity

        async def release(_: TicketType) -> None:
            await self.inventory_ledger.release_hold(
                ticket_type_id=ticket_type_id, quantity=quantity
            )

        await saga.step(
            f'hold:{ticket_type_id}',
            lambda: self.inventory_ledger.try_hold(
                ticket_type_id=ticket_type_id, quantity=quantity
            ),
            compensation=release,
        )

    async def _unwind(
        self,
        saga: SagaRunner,
        error: Exception,
        order: Order | None,
        payment: PaymentResult | None,
    ) -> Exception:
        failed_step = saga.failed_step
        failures = await saga.compensate()
        for entry in saga.saga_log:
            if entry.status in (SagaStepStatus.COMPENSATED, SagaStepStatus.COMPENSATION_FAILED):
                metrics.record_compensation(step=entry.step, result=entry.status.value)

        refund_failure = next((f for f in failures if f.step == STEP_CHARGE_PAYMENT), None)
        if refund_failure is not None and order is not None and payment is not None:
            Logger.base.error(
                f'🚨 [PURCHASE] Manual reconciliation needed: order {order.id} '
                f'payment {payment.payment_id} was charged and not refunded'
            )
            return IssuanceError(
                TicketingErrorCode.PURCHASE_FAILED,
                f'Purchase failed for order {order.id} (payment {payment.payment_id}): '
                f'{error}; refund also failed: {refund_failure.error}',
            )

        if order is not None:
            await self._notify(
                OrderCancellationNotification(
                    recipient_email=order.billing_email,
                    recipient_name=order.billing_name,
                    order_number=order.order_number,
                    reason=str(error),
                    cancelled_at=datetime.now(timezone.utc),
                )
            )

        if failed_step == STEP_COMPLETE_ORDER:
            if (
                isinstance(error, InventoryError)
                and error.code == TicketingErrorCode.RESERVATION_EXPIRED
            ):
                return error
            return IssuanceError(
                TicketingErrorCode.TICKET_ISSUANCE_FAILED, f'Could not issue tickets: {error}'
            )
        if failed_step == STEP_MINT_TICKETS:
            if isinstance(error, IssuanceError):
                return error
            return IssuanceError(
                TicketingErrorCode.TICKET_ISSUANCE_FAILED, f'Could not mint tickets: {error}'
            )
        return error

    # ========== Validation ==========

    async def _load_reservation(self, request: PurchaseRequest) -> Reservation:
        reservation = await self.reservation_repo.get_by_id(
            reservation_id=request.reservation_id
        )
        if reservation is None:
            raise TicketingNotFoundError(f'Reservation {request.reservation_id} not found')
        if reservation.user_id != request.user_id:
            raise AccessDeniedError('Reservation belongs to another user')
        if not reservation.is_live():
            raise InventoryError(
                TicketingErrorCode.RESERVATION_EXPIRED,
                f'Reservation {reservation.id} is {reservation.status} or past its deadline',
            )
        return reservation

    async def _lines_for_reservation(
        self, request: PurchaseRequest, reservation: Reservation
    ) -> list[PurchaseLine]:
        requested = self._merge_selections(request)
        if requested and requested != {reservation.ticket_type_id: reservation.quantity}:
            raise InvalidRequestError(
                TicketingErrorCode.RESERVATION_MISMATCH,
                'Selections must match the reserved ticket type and quantity',
            )
        ticket_type = await self._sellable_ticket_type(reservation.ticket_type_id, request.event_id)
        return [PurchaseLine(ticket_type=ticket_type, quantity=reservation.quantity)]

    async def _lines_for_selections(self, request: PurchaseRequest) -> list[PurchaseLine]:
        requested = self._merge_selections(request)
        if not requested:
            raise InvalidRequestError(
                TicketingErrorCode.NO_VALID_SELECTIONS, 'No valid ticket selections'
            )

        lines = []
        for ticket_type_id in sorted(requested):
            quantity = requested[ticket_type_id]
            ticket_type = await self._sellable_ticket_type(ticket_type_id, request.event_id)
            if quantity > ticket_type.available:
                raise InventoryError(
                    TicketingErrorCode.INSUFFICIENT_INVENTORY,
                    f'Only {ticket_type.available} {ticket_type.name} tickets available',
                )
            lines.append(PurchaseLine(ticket_type=ticket_type, quantity=quantity))
        return lines

    @staticmethod
    def _merge_selections(request: PurchaseRequest) -> dict[int, int]:
        # Entries with quantity <= 0 are ignored; duplicates add up
        merged: dict[int, int] = {}
        for selection in request.selections:
            if selection.quantity > 0:
                merged[selection.ticket_type_id] = (
                    merged.get(selection.ticket_type_id, 0) + selection.quantity
                )
        return merged

    async def _sellable_ticket_type(self, ticket_type_id: int, event_id: int) -> TicketType:
        ticket_type = await self.inventory_ledger.get_ticket_type(ticket_type_id=ticket_type_id)
        if ticket_type is None:
            raise TicketingNotFoundError(f'Ticket type {ticket_type_id} not found')
        if ticket_type.event_id != event_id:
            raise InvalidRequestError(
                TicketingErrorCode.TICKET_TYPE_EVENT_MISMATCH,
                f'Ticket type {ticket_type_id} does not belong to event {event_id}',
            )
        ticket_type.ensure_on_sale()
        return ticket_type

    # ========== Steps & compensations ==========

    async def _charge(self, request: PurchaseRequest, total: int) -> PaymentResult:
        try:
            payment = await self.payment_gateway.process_payment(
                amount=total,
                payment_method=request.payment_method,
                billing_info=request.billing_info,
            )
        except TicketingError:
            raise
        except Exception as e:
            raise PaymentError(TicketingErrorCode.PAYMENT_FAILED, f'Payment error: {e}') from e

        if not payment.succeeded:
            raise PaymentError(
                TicketingErrorCode.PAYMENT_FAILED,
                payment.error_message or f'Payment {payment.status}',
            )
        return payment

    async def _mint(self, order: Order, lines: list[PurchaseLine]) -> list[Ticket]:
        return [
            Ticket.mint(
                order_id=order.id,
                ticket_type_id=line.ticket_type.id,
                qr_code=self.qr_code_generator.generate(
                    order_id=order.id, ticket_type_id=line.ticket_type.id
                ),
            )
            for line in lines
            for _ in range(line.quantity)
        ]

    async def _cancel_order(self, order: Order) -> None:
        cancelled = await self.order_repo.update_status(
            order_id=order.id, expected=OrderStatus.PENDING, new_status=OrderStatus.CANCELLED
        )
        if cancelled is None:
            Logger.base.warning(f'⚠️ [PURCHASE] Order {order.id} was no longer pending')

    async def _refund_payment(self, payment: PaymentResult) -> None:
        refund = await self.payment_gateway.refund_payment(
            payment_id=payment.payment_id, amount=payment.amount
        )
        if not refund.succeeded:
            raise PaymentError(
                TicketingErrorCode.GATEWAY_FAILURE,
                refund.error_message or f'Refund {refund.status}',
            )
        Logger.base.info(f'💸 [PURCHASE] Refunded payment {payment.payment_id}')

    # ========== Notifications ==========

    @staticmethod
    def _confirmation(
        result: PurchaseResult, lines: list[PurchaseLine]
    ) -> OrderConfirmationNotification:
        types = {line.ticket_type.id: line.ticket_type for line in lines}
        return OrderConfirmationNotification(
            recipient_email=result.order.billing_email,
            recipient_name=result.order.billing_name,
            order_number=result.order.order_number,
            event_id=result.order.event_id,
            total_amount=result.order.total_amount,
            tickets=tuple(
                NotificationTicket(
                    ticket_type_name=types[ticket.ticket_type_id].name,
                    qr_code=ticket.qr_code,
                    price=types[ticket.ticket_type_id].price,
                )
                for ticket in result.tickets
            ),
            purchased_at=result.order.updated_at or datetime.now(timezone.utc),
        )

    async def _notify(self, payload: NotificationPayload) -> None:
        try:
            await self.notification_sender.send(payload=payload)
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] {payload.kind} for {payload.order_number} failed: {e}')
