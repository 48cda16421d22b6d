"""
ORM row <-> entity conversion.

SQLAlchemy with as_uuid=True speaks stdlib uuid.UUID; entities carry
uuid_utils.UUID. Conversion happens only here.
"""

import uuid
from typing import Any

from uuid_utils import UUID

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.driven_adapter.model import (
    OrderModel,
    ReservationModel,
    TicketModel,
    TicketTypeModel,
)


def to_pg_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def to_utils_uuid(value: Any) -> UUID:
    return UUID(str(value))


def ticket_type_from_row(row: TicketTypeModel) -> TicketType:
    return TicketType(
        id=row.id,
        event_id=row.event_id,
        name=row.name,
        description=row.description,
        price=row.price,
        capacity=row.capacity,
        sold=row.sold,
        held=row.held,
        sale_start=row.sale_start,
        sale_end=row.sale_end,
        created_at=row.created_at,
    )


def reservation_from_row(row: ReservationModel) -> Reservation:
    return Reservation(
        id=to_utils_uuid(row.id),
        ticket_type_id=row.ticket_type_id,
        quantity=row.quantity,
        user_id=row.user_id,
        status=ReservationStatus(row.status),
        created_at=row.created_at,
        expires_at=row.expires_at,
        updated_at=row.updated_at,
    )


def reservation_to_row(reservation: Reservation) -> ReservationModel:
    return ReservationModel(
        id=to_pg_uuid(reservation.id),
        ticket_type_id=reservation.ticket_type_id,
        quantity=reservation.quantity,
        user_id=reservation.user_id,
        status=reservation.status.value,
        created_at=reservation.created_at,
        expires_at=reservation.expires_at,
        updated_at=reservation.updated_at or reservation.created_at,
    )


def order_from_row(row: OrderModel) -> Order:
    return Order(
        id=to_utils_uuid(row.id),
        user_id=row.user_id,
        event_id=row.event_id,
        order_number=row.order_number,
        total_amount=row.total_amount,
        billing_email=row.billing_email,
        billing_name=row.billing_name,
        status=OrderStatus(row.status),
        payment_id=row.payment_id,
        reservation_id=to_utils_uuid(row.reservation_id) if row.reservation_id else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def order_to_row(order: Order) -> OrderModel:
    return OrderModel(
        id=to_pg_uuid(order.id),
        user_id=order.user_id,
        event_id=order.event_id,
        order_number=order.order_number,
        total_amount=order.total_amount,
        status=order.status.value,
        payment_id=order.payment_id,
        reservation_id=to_pg_uuid(order.reservation_id) if order.reservation_id else None,
        billing_email=order.billing_email,
        billing_name=order.billing_name,
        created_at=order.created_at,
        updated_at=order.updated_at or order.created_at,
    )


def ticket_from_row(row: TicketModel) -> Ticket:
    return Ticket(
        id=to_utils_uuid(row.id),
        order_id=to_utils_uuid(row.order_id),
        ticket_type_id=row.ticket_type_id,
        qr_code=row.qr_code,
        status=TicketStatus(row.status),
        created_at=row.created_at,
        used_at=row.used_at,
    )


def ticket_to_row(ticket: Ticket) -> TicketModel:
    return TicketModel(
        id=to_pg_uuid(ticket.id),
        order_id=to_pg_uuid(ticket.order_id),
        ticket_type_id=ticket.ticket_type_id,
        qr_code=ticket.qr_code,
        status=ticket.status.value,
        created_at=ticket.created_at,
        used_at=ticket.used_at,
    )
