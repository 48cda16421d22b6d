from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.ticketing.app.command.release_reservation_use_case import (
    ReleaseReservationUseCase,
)
from src.service.ticketing.app.command.reserve_tickets_use_case import ReserveTicketsUseCase
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.driving_adapter.http_controller.auth.requester_auth import (
    get_requester,
)
from src.service.ticketing.driving_adapter.http_controller.schema.reservation_schema import (
    ReservationCreateRequest,
    ReservationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_reservation(
    request: ReservationCreateRequest,
    requester: Requester = Depends(get_requester),
    use_case: ReserveTicketsUseCase = Depends(ReserveTicketsUseCase.depends),
) -> ReservationResponse:
    with tracer.start_as_current_span('controller.create_reservation') as span:
        span.set_attribute('ticket_type_id', request.ticket_type_id)
        span.set_attribute('user_id', requester.user_id)

        reservation = await use_case.reserve(
            ticket_type_id=request.ticket_type_id,
            quantity=request.quantity,
            user_id=requester.user_id,
        )
        return ReservationResponse.from_entity(reservation)


@router.delete('/{reservation_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def release_reservation(
    reservation_id: UtilsUUID7,
    requester: Requester = Depends(get_requester),
    use_case: ReleaseReservationUseCase = Depends(ReleaseReservationUseCase.depends),
) -> ReservationResponse:
    # Admins may release on behalf of a buyer
    owner_check = None if requester.is_admin else requester.user_id
    reservation = await use_case.release(reservation_id=reservation_id, user_id=owner_check)
    return ReservationResponse.from_entity(reservation)
