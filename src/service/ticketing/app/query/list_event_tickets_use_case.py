from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.user_role import UserRole
from src.service.ticketing.domain.error.ticketing_errors import AccessDeniedError
from src.service.ticketing.domain.value_object.requester import Requester


class ListEventTicketsUseCase:
    """
    Every ticket issued for an event, for the people running it.

    Events live outside this service, so organizer ownership of `event_id`
    is not checked here; any organizer or admin may list.
    """

    def __init__(self, *, ticket_repo: ITicketRepo) -> None:
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(cls, ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo])) -> Self:
        return cls(ticket_repo=ticket_repo)

    @Logger.io
    async def list_event_tickets(self, *, event_id: int, requester: Requester) -> list[Ticket]:
        if requester.role not in (UserRole.ORGANIZER, UserRole.ADMIN):
            raise AccessDeniedError('Only organizers or admins can list event tickets')
        return await self.ticket_repo.list_by_event(event_id=event_id)
