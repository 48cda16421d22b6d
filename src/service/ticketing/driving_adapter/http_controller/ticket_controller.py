from typing import List

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.use_ticket_use_case import UseTicketUseCase
from src.service.ticketing.app.query.list_user_tickets_use_case import ListUserTicketsUseCase
from src.service.ticketing.app.query.validate_ticket_use_case import ValidateTicketUseCase
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.driving_adapter.http_controller.auth.requester_auth import (
    get_requester,
    require_staff,
)
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    TicketResponse,
)


router = APIRouter()


@router.get('/my_tickets', response_model=List[TicketResponse])
@Logger.io
async def list_my_tickets(
    requester: Requester = Depends(get_requester),
    use_case: ListUserTicketsUseCase = Depends(ListUserTicketsUseCase.depends),
) -> list[TicketResponse]:
    tickets = await use_case.list_user_tickets(user_id=requester.user_id, requester=requester)
    return [TicketResponse.from_entity(t) for t in tickets]


@router.get('/{qr_code}/validate', dependencies=[Depends(require_staff)])
@Logger.io
async def validate_ticket(
    qr_code: str,
    event_id: int,
    use_case: ValidateTicketUseCase = Depends(ValidateTicketUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.validate(qr_code=qr_code, event_id=event_id)
    return TicketResponse.from_entity(ticket)


@router.post('/{qr_code}/use', dependencies=[Depends(require_staff)])
@Logger.io
async def use_ticket(
    qr_code: str,
    event_id: int,
    use_case: UseTicketUseCase = Depends(UseTicketUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.mark_used(qr_code=qr_code, event_id=event_id)
    return TicketResponse.from_entity(ticket)
