from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    TicketingErrorCode,
    TicketingNotFoundError,
    TicketRejectedError,
)


class ValidateTicketUseCase:
    """Read-only check that a QR code admits its holder to `event_id`."""

    def __init__(self, *, ticket_repo: ITicketRepo, order_repo: IOrderRepo) -> None:
        self.ticket_repo = ticket_repo
        self.order_repo = order_repo

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
    ) -> Self:
        return cls(ticket_repo=ticket_repo, order_repo=order_repo)

    @Logger.io
    async def validate(self, *, qr_code: str, event_id: int) -> Ticket:
        ticket = await self.ticket_repo.get_by_qr_code(qr_code=qr_code)
        if ticket is None:
            raise TicketingNotFoundError('Ticket not found')

        order = await self.order_repo.get_by_id(order_id=ticket.order_id)
        if order is None or order.event_id != event_id:
            raise TicketRejectedError(
                TicketingErrorCode.WRONG_EVENT, f'Ticket is not valid for event {event_id}'
            )
        if not ticket.can_be_used:
            raise TicketRejectedError(
                TicketingErrorCode.NOT_USABLE, f'Ticket is {ticket.status} and cannot be used'
            )
        # A refund moves the order first; its tickets stop admitting from then on
        if order.status != OrderStatus.COMPLETED:
            raise TicketRejectedError(
                TicketingErrorCode.NOT_USABLE, f'Order {order.order_number} is {order.status}'
            )
        return ticket
