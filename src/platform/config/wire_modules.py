"""
Wire Modules Configuration

Modules whose `depends()` classmethods use `Provide[Container.x]`.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.ticketing.app.command import (
    cancel_order_use_case,
    purchase_tickets_use_case,
    refund_order_use_case,
    release_reservation_use_case,
    reserve_tickets_use_case,
    use_ticket_use_case,
)
from src.service.ticketing.app.query import (
    get_order_use_case,
    list_event_tickets_use_case,
    list_ticket_types_use_case,
    list_user_orders_use_case,
    list_user_tickets_use_case,
    validate_ticket_use_case,
)


WIRE_MODULES: list[ModuleType] = [
    reserve_tickets_use_case,
    release_reservation_use_case,
    purchase_tickets_use_case,
    cancel_order_use_case,
    refund_order_use_case,
    use_ticket_use_case,
    get_order_use_case,
    list_event_tickets_use_case,
    list_ticket_types_use_case,
    list_user_orders_use_case,
    list_user_tickets_use_case,
    validate_ticket_use_case,
]
