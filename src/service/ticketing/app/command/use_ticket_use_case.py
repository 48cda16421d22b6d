from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.app.query.validate_ticket_use_case import ValidateTicketUseCase
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.error.ticketing_errors import (
    TicketingError,
    TicketingErrorCode,
    TicketRejectedError,
)


class UseTicketUseCase:
    """Admit a ticket at the door: ACTIVE -> USED exactly once."""

    def __init__(self, *, ticket_repo: ITicketRepo, order_repo: IOrderRepo) -> None:
        self.ticket_repo = ticket_repo
        self.validator = ValidateTicketUseCase(ticket_repo=ticket_repo, order_repo=order_repo)

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
    ) -> Self:
        return cls(ticket_repo=ticket_repo, order_repo=order_repo)

    @Logger.io
    async def mark_used(self, *, qr_code: str, event_id: int) -> Ticket:
        try:
            ticket = await self.validator.validate(qr_code=qr_code, event_id=event_id)
            used = await self.ticket_repo.transition_status(
                ticket_id=ticket.id, expected=TicketStatus.ACTIVE, new_status=TicketStatus.USED
            )
            if used is None:
                # Another scanner won
                raise TicketRejectedError(
                    TicketingErrorCode.NOT_USABLE, f'Ticket {ticket.id} was already scanned'
                )
        except TicketingError as e:
            metrics.record_scan(event_id=event_id, result=e.code.value)
            raise

        metrics.record_scan(event_id=event_id, result='admitted')
        Logger.base.info(f'🎟️ [ENTRY] Ticket {used.id} admitted to event {event_id}')
        return used
