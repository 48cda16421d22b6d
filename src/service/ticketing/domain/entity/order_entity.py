from datetime import datetime, timezone
import secrets
from typing import Optional

import attrs
import uuid_utils
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.enum.order_status import OrderStatus, can_transition
from src.service.ticketing.domain.error.ticketing_errors import (
    InvalidRequestError,
    OrderStateError,
    TicketingErrorCode,
)
from src.service.ticketing.domain.value_object.billing_info import BillingInfo


def generate_order_number(now: datetime | None = None) -> str:
    """ORD-YYYYMMDD-NNNNNN with a cryptographically random suffix."""
    now = now or datetime.now(timezone.utc)
    return f'ORD-{now.strftime("%Y%m%d")}-{secrets.randbelow(1_000_000):06d}'


# Attempts at a free order number before creation gives up
MAX_ORDER_NUMBER_ATTEMPTS = 5


@attrs.define
class Order:
    id: UUID
    user_id: int
    event_id: int
    order_number: str
    total_amount: int
    billing_email: str
    billing_name: str
    status: OrderStatus = OrderStatus.PENDING
    payment_id: Optional[str] = None
    reservation_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: int,
        event_id: int,
        total_amount: int,
        billing_info: BillingInfo,
        reservation_id: Optional[UUID] = None,
    ) -> 'Order':
        if total_amount <= 0:
            raise InvalidRequestError(
                TicketingErrorCode.TOTAL_NOT_POSITIVE, 'Order total must be greater than 0'
            )
        now = datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            user_id=user_id,
            event_id=event_id,
            order_number=generate_order_number(now),
            total_amount=total_amount,
            billing_email=billing_info.email,
            billing_name=billing_info.name,
            status=OrderStatus.PENDING,
            reservation_id=reservation_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def can_be_cancelled(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def can_be_refunded(self) -> bool:
        return self.status == OrderStatus.COMPLETED

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id

    def with_new_order_number(self) -> 'Order':
        """Same order under a freshly drawn number (after a collision)."""
        return attrs.evolve(self, order_number=generate_order_number(self.created_at))

    def _transition(self, new_status: OrderStatus, **changes: object) -> 'Order':
        if not can_transition(self.status, new_status):
            raise OrderStateError(
                TicketingErrorCode.INVALID_TRANSITION,
                f'Cannot move order {self.order_number} from {self.status} to {new_status}',
            )
        return attrs.evolve(
            self, status=new_status, updated_at=datetime.now(timezone.utc), **changes
        )

    @Logger.io
    def complete(self, *, payment_id: str) -> 'Order':
        return self._transition(OrderStatus.COMPLETED, payment_id=payment_id)

    @Logger.io
    def cancel(self) -> 'Order':
        return self._transition(OrderStatus.CANCELLED)

    @Logger.io
    def refund(self) -> 'Order':
        if not self.can_be_refunded:
            raise OrderStateError(
                TicketingErrorCode.NOT_REFUNDABLE,
                f'Order {self.order_number} is {self.status} and cannot be refunded',
            )
        return self._transition(OrderStatus.REFUNDED)
