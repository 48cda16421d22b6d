from typing import List

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.query.list_event_tickets_use_case import ListEventTicketsUseCase
from src.service.ticketing.app.query.list_ticket_types_use_case import ListTicketTypesUseCase
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.driving_adapter.http_controller.auth.requester_auth import (
    get_requester,
)
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    TicketResponse,
    TicketTypeResponse,
)


router = APIRouter()


@router.get('/{event_id}/ticket_types', response_model=List[TicketTypeResponse])
@Logger.io
async def list_ticket_types(
    event_id: int,
    use_case: ListTicketTypesUseCase = Depends(ListTicketTypesUseCase.depends),
) -> list[TicketTypeResponse]:
    ticket_types = await use_case.list_ticket_types(event_id=event_id)
    return [TicketTypeResponse.from_entity(tt) for tt in ticket_types]


@router.get('/{event_id}/tickets', response_model=List[TicketResponse])
@Logger.io
async def list_event_tickets(
    event_id: int,
    requester: Requester = Depends(get_requester),
    use_case: ListEventTicketsUseCase = Depends(ListEventTicketsUseCase.depends),
) -> list[TicketResponse]:
    tickets = await use_case.list_event_tickets(event_id=event_id, requester=requester)
    return [TicketResponse.from_entity(t) for t in tickets]
