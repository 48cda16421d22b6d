from datetime import datetime, timezone
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_notification import INotificationSender
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    OrderStateError,
    TicketingErrorCode,
    TicketingNotFoundError,
)
from src.service.ticketing.domain.value_object.notification_payload import (
    OrderCancellationNotification,
)
from src.service.ticketing.domain.value_object.requester import Requester


class CancelOrderUseCase:
    def __init__(
        self, *, order_repo: IOrderRepo, notification_sender: INotificationSender
    ) -> None:
        self.order_repo = order_repo
        self.notification_sender = notification_sender

    @classmethod
    @inject
    def depends(
        cls,
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
        notification_sender: INotificationSender = Depends(
            Provide[Container.notification_sender]
        ),
    ) -> Self:
        return cls(order_repo=order_repo, notification_sender=notification_sender)

    @Logger.io
    async def cancel(self, *, order_id: UUID, requester: Requester) -> Order:
        order = await self.order_repo.get_by_id(order_id=order_id)
        if order is None:
            raise TicketingNotFoundError(f'Order {order_id} not found')
        if not requester.can_access(order.user_id):
            raise AccessDeniedError('Only the buyer can cancel this order')

        # Raises INVALID_TRANSITION for anything but PENDING
        order.cancel()
        cancelled = await self.order_repo.update_status(
            order_id=order_id, expected=OrderStatus.PENDING, new_status=OrderStatus.CANCELLED
        )
        if cancelled is None:
            raise OrderStateError(
                TicketingErrorCode.INVALID_TRANSITION,
                f'Order {order.order_number} changed status while cancelling',
            )

        Logger.base.info(f'📤 [CANCEL] Order {order.order_number} cancelled by {requester.user_id}')
        try:
            await self.notification_sender.send(
                payload=OrderCancellationNotification(
                    recipient_email=cancelled.billing_email,
                    recipient_name=cancelled.billing_name,
                    order_number=cancelled.order_number,
                    reason='Cancelled by request',
                    cancelled_at=datetime.now(timezone.utc),
                )
            )
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] Cancellation notice for {order.order_number} failed: {e}')
        return cancelled
