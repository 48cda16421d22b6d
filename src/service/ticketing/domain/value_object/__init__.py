"""Ticketing Domain Value Objects"""

from src.service.ticketing.domain.value_object.billing_info import BillingInfo
from src.service.ticketing.domain.value_object.requester import Requester
from src.service.ticketing.domain.value_object.ticket_selection import TicketSelection

__all__ = ['BillingInfo', 'Requester', 'TicketSelection']
