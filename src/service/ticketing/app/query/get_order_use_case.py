from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.purchase_dto import OrderWithTickets
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.error.ticketing_errors import (
    AccessDeniedError,
    TicketingNotFoundError,
)
from src.service.ticketing.domain.value_object.requester import Requester


class GetOrderUseCase:
    def __init__(self, *, order_repo: IOrderRepo, ticket_repo: ITicketRepo) -> None:
        self.order_repo = order_repo
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(
        cls,
        order_repo: IOrderRepo = Depends(Provide[Container.order_repo]),
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
    ) -> Self:
        return cls(order_repo=order_repo, ticket_repo=ticket_repo)

    @Logger.io
    async def get_order_with_tickets(
        self, *, order_id: UUID, requester: Requester
    ) -> OrderWithTickets:
        order = await self.order_repo.get_by_id(order_id=order_id)
        if order is None:
            raise TicketingNotFoundError(f'Order {order_id} not found')
        if not requester.can_access(order.user_id):
            raise AccessDeniedError('Order belongs to another user')

        tickets = await self.ticket_repo.list_by_order(order_id=order_id)
        return OrderWithTickets(order=order, tickets=tickets)
