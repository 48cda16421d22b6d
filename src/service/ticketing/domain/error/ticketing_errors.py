"""
Ticketing error taxonomy.

Every error carries a `TicketingErrorCode` so callers (and the HTTP layer,
which renders it as `code`) can branch on the kind of failure without parsing
messages. The classes group codes by category and fix the HTTP status.
"""

from enum import StrEnum

from src.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    DomainError,
    ForbiddenError,
    NotFoundError,
)


class TicketingErrorCode(StrEnum):
    # Request validation
    QUANTITY_INVALID = 'QUANTITY_INVALID'
    QUANTITY_EXCEEDS_MAX = 'QUANTITY_EXCEEDS_MAX'
    SALE_NOT_STARTED = 'SALE_NOT_STARTED'
    SALE_ENDED = 'SALE_ENDED'
    NO_VALID_SELECTIONS = 'NO_VALID_SELECTIONS'
    TOTAL_NOT_POSITIVE = 'TOTAL_NOT_POSITIVE'
    RESERVATION_MISMATCH = 'RESERVATION_MISMATCH'
    TICKET_TYPE_EVENT_MISMATCH = 'TICKET_TYPE_EVENT_MISMATCH'
    INVALID_TICKET_TYPE = 'INVALID_TICKET_TYPE'

    NOT_FOUND = 'NOT_FOUND'
    FORBIDDEN = 'FORBIDDEN'

    # Inventory
    SOLD_OUT = 'SOLD_OUT'
    INSUFFICIENT_INVENTORY = 'INSUFFICIENT_INVENTORY'
    RESERVATION_EXPIRED = 'RESERVATION_EXPIRED'
    LEDGER_UNDERFLOW = 'LEDGER_UNDERFLOW'

    # Payment
    PAYMENT_FAILED = 'PAYMENT_FAILED'
    GATEWAY_FAILURE = 'GATEWAY_FAILURE'

    # Issuance
    TICKET_ISSUANCE_FAILED = 'TICKET_ISSUANCE_FAILED'
    PURCHASE_FAILED = 'PURCHASE_FAILED'
    ORDER_NUMBER_UNAVAILABLE = 'ORDER_NUMBER_UNAVAILABLE'

    # Ticket validation
    WRONG_EVENT = 'WRONG_EVENT'
    NOT_USABLE = 'NOT_USABLE'

    # Order state
    NOT_REFUNDABLE = 'NOT_REFUNDABLE'
    USED_TICKETS_PRESENT = 'USED_TICKETS_PRESENT'
    INVALID_TRANSITION = 'INVALID_TRANSITION'


class TicketingError(CustomBaseError):
    code: TicketingErrorCode

    def __init__(self, code: TicketingErrorCode, message: str, status_code: int) -> None:
        self.code = code
        # Direct call: the category bases narrow their __init__ signatures
        CustomBaseError.__init__(self, message, status_code)

    def __str__(self) -> str:
        return f'{self.code}: {self.message}'


class InvalidRequestError(TicketingError, DomainError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        TicketingError.__init__(self, code, message, 400)


class TicketingNotFoundError(TicketingError, NotFoundError):
    def __init__(self, message: str) -> None:
        TicketingError.__init__(self, TicketingErrorCode.NOT_FOUND, message, 404)


class AccessDeniedError(TicketingError, ForbiddenError):
    def __init__(self, message: str) -> None:
        TicketingError.__init__(self, TicketingErrorCode.FORBIDDEN, message, 403)


class InventoryError(TicketingError, ConflictError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        TicketingError.__init__(self, code, message, 409)


class PaymentError(TicketingError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        super().__init__(code, message, 402)


class IssuanceError(TicketingError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        super().__init__(code, message, 500)


class TicketRejectedError(TicketingError, ConflictError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        TicketingError.__init__(self, code, message, 409)


class OrderStateError(TicketingError, ConflictError):
    def __init__(self, code: TicketingErrorCode, message: str) -> None:
        TicketingError.__init__(self, code, message, 409)
