"""
Notification payloads.

Each variant is a tagged record handed to the notification capability; the
renderer and sender decide how it becomes an email. `kind` is the tag.
"""

from datetime import datetime
from enum import StrEnum
from typing import Union

import attrs


class NotificationKind(StrEnum):
    ORDER_CONFIRMATION = 'order_confirmation'
    ORDER_CANCELLATION = 'order_cancellation'
    ORDER_REFUND = 'order_refund'


@attrs.define(frozen=True)
class NotificationTicket:
    ticket_type_name: str
    qr_code: str
    price: int


@attrs.define(frozen=True)
class OrderConfirmationNotification:
    recipient_email: str
    recipient_name: str
    order_number: str
    event_id: int
    total_amount: int
    tickets: tuple[NotificationTicket, ...]
    purchased_at: datetime
    kind: NotificationKind = NotificationKind.ORDER_CONFIRMATION


@attrs.define(frozen=True)
class OrderCancellationNotification:
    recipient_email: str
    recipient_name: str
    order_number: str
    reason: str
    cancelled_at: datetime
    kind: NotificationKind = NotificationKind.ORDER_CANCELLATION


@attrs.define(frozen=True)
class OrderRefundNotification:
    recipient_email: str
    recipient_name: str
    order_number: str
    refund_amount: int
    refunded_at: datetime
    kind: NotificationKind = NotificationKind.ORDER_REFUND


NotificationPayload = Union[
    OrderConfirmationNotification,
    OrderCancellationNotification,
    OrderRefundNotification,
]
