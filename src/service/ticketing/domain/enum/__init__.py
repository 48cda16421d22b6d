"""Ticketing Domain Enums"""

from src.service.ticketing.domain.enum.order_status import OrderStatus
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.enum.reservation_status import ReservationStatus
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.enum.user_role import UserRole

__all__ = ['OrderStatus', 'PaymentStatus', 'ReservationStatus', 'TicketStatus', 'UserRole']
