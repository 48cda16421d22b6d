import attrs
import orjson

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_notification import (
    INotificationRenderer,
    INotificationSender,
    RenderedNotification,
)
from src.service.ticketing.domain.value_object.notification_payload import NotificationPayload


class MockEmailSender(INotificationSender):
    """Renders and logs notifications instead of delivering them; keeps an outbox for tests."""

    def __init__(self, *, renderer: INotificationRenderer) -> None:
        self.renderer = renderer
        self.outbox: list[tuple[str, RenderedNotification]] = []

    @Logger.io
    async def send(self, *, payload: NotificationPayload) -> None:
        rendered = self.renderer.render(payload=payload)
        self.outbox.append((payload.recipient_email, rendered))
        body = orjson.dumps(attrs.asdict(payload), default=str).decode()
        Logger.base.info(
            f'📧 [MOCK EMAIL] to={payload.recipient_email} subject="{rendered.subject}" payload={body}'
        )
