from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.error.ticketing_errors import AccessDeniedError
from src.service.ticketing.domain.value_object.requester import Requester


class ListUserTicketsUseCase:
    def __init__(self, *, ticket_repo: ITicketRepo) -> None:
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(cls, ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo])) -> Self:
        return cls(ticket_repo=ticket_repo)

    @Logger.io
    async def list_user_tickets(self, *, user_id: int, requester: Requester) -> list[Ticket]:
        if not requester.can_access(user_id):
            raise AccessDeniedError("Cannot list another user's tickets")
        return await self.ticket_repo.list_by_user(user_id=user_id)
