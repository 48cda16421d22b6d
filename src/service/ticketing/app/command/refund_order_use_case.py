from collections import Counter
from datetime import datetime, timezone
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_notification import INotificationSender
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway, RefundResult
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    OrderStateError,
    PaymentError,
    TicketingError,
    TicketingErrorCode,
    TicketingNotFoundError,
)
from src.service.ticketing.domain.value_object.notification_payload import (
    OrderRefundNotification,
)
from src.service.ticketing.domain.value_object.requester import Requester


tracer = trace.get_tracer(__name__)


class RefundOrderUseCase:
    """
    Refund a completed order and put its tickets back on sale.

    Nothing is mutated until the gateway confirms the refund. The order's
    COMPLETED -> REFUNDED swap decides which of two concurrent refunds gets to
    touch tickets and inventory. Once the order has left COMPLETED no ticket of
    it admits anyone; a ticket scanned before that keeps its seat sold and is
    logged for reconciliation.
    """

    def __init__(
        self,
        *,
        order_repo: IOrderRepo,
        ticket_repo: ITicketRepo,
        inventory_ledger: IInventoryLedger,
        payment_gateway: IPaymentGateway,
        notification_sender: INotificationSender,
    ) -> None:
        self.order_repo = order_repo
        self.ticket_repo = ticket_repo
        self.inventory_ledger = inventory_ledger
        self.payment_gateway = payment_gateway
        self.notification_sender = notification_sender

    @classmethod
    @inject
    def depends(
        cls,
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notification_sender: INotificationSender = Depends(
            Provide[Container.notification_sender]
        ),
    ) -> Self:
        return cls(
            order_repo=order_repo,
            ticket_repo=ticket_repo,
            inventory_ledger=inventory_ledger,
            payment_gateway=payment_gateway,
            notification_sender=notification_sender,
        )

    @Logger.io
    async def refund(self, *, order_id: UUID, requester: Requester) -> RefundResult:
        with tracer.start_as_current_span('use_case.refund_order') as span:
            span.set_attribute('order.id', str(order_id))
            try:
                result = await self._refund(order_id=order_id, requester=requester)
            except TicketingError as e:
                span.set_attribute('error.code', e.code.value)
                metrics.record_refund(result=e.code.value)
                raise
            metrics.record_refund(result='success')
            return result

    async def _refund(self, *, order_id: UUID, requester: Requester) -> RefundResult:
        order = await self.order_repo.get_by_id(order_id=order_id)
        if order is None:
            raise TicketingNotFoundError(f'Order {order_id} not found')
        if not requester.can_access(order.user_id):
            raise AccessDeniedError('Only the buyer or an admin can refund this order')
        if not order.can_be_refunded:
            raise OrderStateError(
                TicketingErrorCode.NOT_REFUNDABLE,
                f'Order {order.order_number} is {order.status} and cannot be refunded',
            )

        tickets = await self.ticket_repo.list_by_order(order_id=order_id)
        if any(ticket.is_used for ticket in tickets):
            raise OrderStateError(
                TicketingErrorCode.USED_TICKETS_PRESENT,
                f'Order {order.order_number} has tickets that were already used',
            )

        try:
            refund = await self.payment_gateway.refund_payment(
                payment_id=order.payment_id, amount=order.total_amount
            )
        except Exception as e:
            raise PaymentError(TicketingErrorCode.GATEWAY_FAILURE, f'Refund error: {e}') from e
        if not refund.succeeded:
            raise PaymentError(
                TicketingErrorCode.GATEWAY_FAILURE,
                refund.error_message or f'Refund {refund.status}',
            )

        refunded = await self.order_repo.update_status(
            order_id=order_id, expected=OrderStatus.COMPLETED, new_status=OrderStatus.REFUNDED
        )
        if refunded is None:
            # A concurrent refund already moved the order and owns the cleanup
            Logger.base.error(
                f'🚨 [REFUND] Order {order.order_number} left COMPLETED before refund '
                f'{refund.refund_id} was recorded; reconcile payment {order.payment_id}'
            )
            raise OrderStateError(
                TicketingErrorCode.NOT_REFUNDABLE,
                f'Order {order.order_number} is no longer refundable',
            )

        # Only tickets this refund actually moved go back on sale
        refunded_tickets = []
        for ticket in tickets:
            try:
                moved = await self.ticket_repo.transition_status(
                    ticket_id=ticket.id,
                    expected=TicketStatus.ACTIVE,
                    new_status=TicketStatus.REFUNDED,
                )
            except Exception as e:
                Logger.base.error(
                    f'🚨 [REFUND] Ticket {ticket.id} of order {order.order_number} '
                    f'not marked refunded, kept off sale; reconcile: {e}'
                )
                continue
            if moved is None:
                # Scanned between the used-ticket check and the order swap
                current = await self.ticket_repo.get_by_id(ticket_id=ticket.id)
                Logger.base.error(
                    f'🚨 [REFUND] Ticket {ticket.id} of refunded order {order.order_number} is '
                    f'{current.status if current else "missing"}; reconcile payment '
                    f'{order.payment_id}'
                )
                continue
            refunded_tickets.append(moved)

        released = Counter(t.ticket_type_id for t in refunded_tickets)
        for ticket_type_id, quantity in sorted(released.items()):
            await self.inventory_ledger.release_sold(
                ticket_type_id=ticket_type_id, quantity=quantity
            )

        Logger.base.info(
            f'💸 [REFUND] Order {order.order_number} refunded {refund.amount} '
            f'({len(refunded_tickets)} of {len(tickets)} tickets back on sale)'
        )
        try:
            await self.notification_sender.send(
                payload=OrderRefundNotification(
                    recipient_email=refunded.billing_email,
                    recipient_name=refunded.billing_name,
                    order_number=refunded.order_number,
                    refund_amount=refund.amount,
                    refunded_at=refund.processed_at or datetime.now(timezone.utc),
                )
            )
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] Refund notice for {order.order_number} failed: {e}')
        return refund
