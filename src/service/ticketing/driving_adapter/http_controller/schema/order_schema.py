from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.ticketing.app.dto.purchase_dto import OrderWithTickets, PurchaseResult
from src.service.ticketing.app.interface.i_payment_gateway import RefundResult
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    TicketResponse,
)


class TicketSelectionRequest(BaseModel):
    ticket_type_id: int
    quantity: int


class BillingInfoRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    card_token: Optional[str] = None
    payment_type: Optional[str] = None


class PurchaseRequestBody(BaseModel):
    model_config = {
        'json_schema_extra': {
            'examples': [
                {
                    'event_id': 1,
                    'reservation_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                    'selections': [],
                    'payment_method': 'card',
                    'billing_info': {'email': 'buyer@example.com', 'name': 'Ada Buyer'},
                },
                {
                    'event_id': 1,
                    'selections': [{'ticket_type_id': 1, 'quantity': 2}],
                    'payment_method': 'card',
                    'billing_info': {'email': 'buyer@example.com', 'name': 'Ada Buyer'},
                },
            ]
        }
    }

    event_id: int
    selections: List[TicketSelectionRequest] = []
    reservation_id: Optional[UtilsUUID7] = None
    payment_method: str = 'card'
    billing_info: BillingInfoRequest


class OrderResponse(BaseModel):
    id: UtilsUUID7
    order_number: str
    user_id: int
    event_id: int
    total_amount: int
    status: str
    payment_id: Optional[str] = None
    reservation_id: Optional[UtilsUUID7] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order) -> 'OrderResponse':
        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            event_id=order.event_id,
            total_amount=order.total_amount,
            status=order.status.value,
            payment_id=order.payment_id,
            reservation_id=order.reservation_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderWithTicketsResponse(BaseModel):
    order: OrderResponse
    tickets: List[TicketResponse]

    @classmethod
    def from_dto(cls, dto: OrderWithTickets) -> 'OrderWithTicketsResponse':
        return cls(
            order=OrderResponse.from_entity(dto.order),
            tickets=[TicketResponse.from_entity(t) for t in dto.tickets],
        )


class PurchaseResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'order': {
                    'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                    'order_number': 'ORD-20250110-004217',
                    'user_id': 2,
                    'event_id': 1,
                    'total_amount': 5000,
                    'status': 'completed',
                    'payment_id': 'mock_pay_1736505000_5000_1a2b3c4d',
                },
                'tickets': [],
                'payment_status': 'success',
            }
        },
    }

    order: OrderResponse
    tickets: List[TicketResponse]
    payment_id: str
    payment_status: str
    transaction_id: Optional[str] = None

    @classmethod
    def from_dto(cls, result: PurchaseResult) -> 'PurchaseResponse':
        return cls(
            order=OrderResponse.from_entity(result.order),
            tickets=[TicketResponse.from_entity(t) for t in result.tickets],
            payment_id=result.payment.payment_id,
            payment_status=result.payment.status.value,
            transaction_id=result.payment.transaction_id,
        )


class RefundResponse(BaseModel):
    refund_id: str
    status: str
    amount: int
    processed_at: datetime

    @classmethod
    def from_result(cls, result: RefundResult) -> 'RefundResponse':
        return cls(
            refund_id=result.refund_id,
            status=result.status.value,
            amount=result.amount,
            processed_at=result.processed_at,
        )
