from typing import List

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.ticketing.app.command.cancel_order_use_case import CancelOrderUseCase
from src.service.ticketing.app.command.purchase_tickets_use_case import PurchaseTicketsUseCase
from src.service.ticketing.app.command.refund_order_use_case import RefundOrderUseCase
from src.service.ticketing.app.dto.purchase_dto import PurchaseRequest
from src.service.ticketing.app.query.get_order_use_case import GetOrderUseCase
from src.service.ticketing.app.query.list_user_orders_use_case import ListUserOrdersUseCase
from src.service.ticketing.domain.value_object.billing_info import BillingInfo
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.domain.value_object.ticket_selection import TicketSelection
from src.service.ticketing.driving_adapter.http_controller.auth.requester_auth import (
    get_requester,
)
from src.service.ticketing.driving_adapter.http_controller.schema.order_schema import (
    OrderResponse,
    OrderWithTicketsResponse,
    PurchaseRequestBody,
    PurchaseResponse,
    RefundResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def purchase_tickets(
    body: PurchaseRequestBody,
    requester: Requester = Depends(get_requester),
    use_case: PurchaseTicketsUseCase = Depends(PurchaseTicketsUseCase.depends),
) -> PurchaseResponse:
    with tracer.start_as_current_span('controller.purchase_tickets') as span:
        span.set_attribute('event_id', body.event_id)
        span.set_attribute('user_id', requester.user_id)

        result = await use_case.purchase(
            request=PurchaseRequest(
                user_id=requester.user_id,
                event_id=body.event_id,
                billing_info=BillingInfo(**body.billing_info.model_dump()),
                payment_method=body.payment_method,
                selections=tuple(
                    TicketSelection(ticket_type_id=s.ticket_type_id, quantity=s.quantity)
                    for s in body.selections
                ),
                reservation_id=body.reservation_id,
            )
        )
        return PurchaseResponse.from_dto(result)


@router.get('/my_orders', response_model=List[OrderResponse])
@Logger.io
async def list_my_orders(
    requester: Requester = Depends(get_requester),
    use_case: ListUserOrdersUseCase = Depends(ListUserOrdersUseCase.depends),
) -> list[OrderResponse]:
    orders = await use_case.list_user_orders(user_id=requester.user_id, requester=requester)
    return [OrderResponse.from_entity(o) for o in orders]


@router.get('/{order_id}')
@Logger.io
async def get_order(
    order_id: UtilsUUID7,
    requester: Requester = Depends(get_requester),
    use_case: GetOrderUseCase = Depends(GetOrderUseCase.depends),
) -> OrderWithTicketsResponse:
    result = await use_case.get_order_with_tickets(order_id=order_id, requester=requester)
    return OrderWithTicketsResponse.from_dto(result)


@router.patch('/{order_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_order(
    order_id: UtilsUUID7,
    requester: Requester = Depends(get_requester),
    use_case: CancelOrderUseCase = Depends(CancelOrderUseCase.depends),
) -> OrderResponse:
    order = await use_case.cancel(order_id=order_id, requester=requester)
    return OrderResponse.from_entity(order)


@router.post('/{order_id}/refund')
@Logger.io
async def refund_order(
    order_id: UtilsUUID7,
    requester: Requester = Depends(get_requester),
    use_case: RefundOrderUseCase = Depends(RefundOrderUseCase.depends),
) -> RefundResponse:
    result = await use_case.refund(order_id=order_id, requester=requester)
    return RefundResponse.from_result(result)
