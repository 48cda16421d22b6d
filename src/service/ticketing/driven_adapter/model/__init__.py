"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.ticketing.driven_adapter.model.order_model import OrderModel
from src.service.ticketing.driven_adapter.model.reservation_model import ReservationModel
from src.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from src.service.ticketing.driven_adapter.model.ticket_type_model import TicketTypeModel

__all__ = [
    'OrderModel',
    'ReservationModel',
    'TicketModel',
    'TicketTypeModel',
]
