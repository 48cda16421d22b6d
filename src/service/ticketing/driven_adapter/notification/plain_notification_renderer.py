from html import escape

from src.service.ticketing.app.interface.i_notification import (
    INotificationRenderer,
    RenderedNotification,
)
from src.service.ticketing.domain.value_object.notification_payload import (
    NotificationPayload,
    OrderCancellationNotification,
    OrderConfirmationNotification,
    OrderRefundNotification,
)


def _money(amount: int) -> str:
    return f'{amount / 100:.2f}'


class PlainNotificationRenderer(INotificationRenderer):
    """Minimal subject / HTML / text rendering for each notification variant."""

    def render(self, *, payload: NotificationPayload) -> RenderedNotification:
        match payload:
            case OrderConfirmationNotification():
                lines = [
                    f'Hi {payload.recipient_name},',
                    f'Your order {payload.order_number} is confirmed.',
                    f'Total: {_money(payload.total_amount)}',
                    *(f'- {t.ticket_type_name}: {t.qr_code}' for t in payload.tickets),
                ]
                subject = f'Order confirmation {payload.order_number}'
            case OrderCancellationNotification():
                lines = [
                    f'Hi {payload.recipient_name},',
                    f'Your order {payload.order_number} was cancelled.',
                    f'Reason: {payload.reason}',
                ]
                subject = f'Order cancelled {payload.order_number}'
            case OrderRefundNotification():
                lines = [
                    f'Hi {payload.recipient_name},',
                    f'Your order {payload.order_number} was refunded.',
                    f'Amount: {_money(payload.refund_amount)}',
                ]
                subject = f'Refund processed {payload.order_number}'
            case _:
                raise ValueError(f'Unsupported notification payload: {type(payload).__name__}')

        html = ''.join(f'<p>{escape(line)}</p>' for line in lines)
        return RenderedNotification(subject=subject, html=html, text='\n'.join(lines))
