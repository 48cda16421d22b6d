from abc import ABC, abstractmethod

import attrs

from src.service.ticketing.domain.value_object.notification_payload import NotificationPayload


@attrs.define(frozen=True)
class RenderedNotification:
    subject: str
    html: str
    text: str


class INotificationRenderer(ABC):
    @abstractmethod
    def render(self, *, payload: NotificationPayload) -> RenderedNotification:
        pass


class INotificationSender(ABC):
    @abstractmethod
    async def send(self, *, payload: NotificationPayload) -> None:
        """Deliver a notification; failures raise and callers decide whether they matter"""
        pass
