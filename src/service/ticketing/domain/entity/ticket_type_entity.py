from datetime import datetime, timedelta, timezone
from typing import Optional

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.error.ticketing_errors import (
    InvalidRequestError,
    InventoryError,
    TicketingErrorCode,
)


MAX_TICKET_PRICE = 1_000_000  # minor units
MAX_TICKET_CAPACITY = 100_000
MIN_SALE_WINDOW = timedelta(hours=1)
MAX_NAME_LENGTH = 100


@attrs.define
class TicketType:
    """
    A priced class of fungible tickets for one event.

    `sold` and `held` are owned by the inventory ledger; this entity is a
    snapshot. `sold + held <= capacity` always holds for a snapshot taken from
    the ledger.
    """

    id: int
    event_id: int
    name: str
    price: int
    capacity: int
    sale_start: datetime
    sale_end: datetime
    sold: int = 0
    held: int = 0
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def available(self) -> int:
        return max(self.capacity - self.sold - self.held, 0)

    @property
    def is_sold_out(self) -> bool:
        return self.available == 0

    def sale_not_started(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) < self.sale_start

    def sale_ended(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.sale_end

    def is_on_sale(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return not self.sale_not_started(now) and not self.sale_ended(now)

    def ensure_on_sale(self, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        if self.sale_not_started(now):
            raise InvalidRequestError(
                TicketingErrorCode.SALE_NOT_STARTED, f'Sale for {self.name} has not started'
            )
        if self.sale_ended(now):
            raise InvalidRequestError(
                TicketingErrorCode.SALE_ENDED, f'Sale for {self.name} has ended'
            )

    # Counter transitions. Each returns a new snapshot or raises without change.

    def with_hold(self, quantity: int) -> 'TicketType':
        if quantity <= 0:
            raise InvalidRequestError(
                TicketingErrorCode.QUANTITY_INVALID, 'Quantity must be greater than 0'
            )
        if self.available == 0:
            raise InventoryError(TicketingErrorCode.SOLD_OUT, f'{self.name} is sold out')
        if quantity > self.available:
            raise InventoryError(
                TicketingErrorCode.INSUFFICIENT_INVENTORY,
                f'Only {self.available} {self.name} tickets available',
            )
        return attrs.evolve(self, held=self.held + quantity)

    def with_released_hold(self, quantity: int) -> 'TicketType':
        self._ensure_covers(self.held, quantity, 'held')
        return attrs.evolve(self, held=self.held - quantity)

    def with_committed_hold(self, quantity: int) -> 'TicketType':
        self._ensure_covers(self.held, quantity, 'held')
        return attrs.evolve(self, held=self.held - quantity, sold=self.sold + quantity)

    def with_released_sold(self, quantity: int) -> 'TicketType':
        self._ensure_covers(self.sold, quantity, 'sold')
        return attrs.evolve(self, sold=self.sold - quantity)

    def _ensure_covers(self, counter: int, quantity: int, counter_name: str) -> None:
        if quantity <= 0 or quantity > counter:
            raise InventoryError(
                TicketingErrorCode.LEDGER_UNDERFLOW,
                f'Cannot take {quantity} from {counter_name}={counter} of ticket type {self.id}',
            )

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: int,
        event_id: int,
        name: str,
        price: int,
        capacity: int,
        sale_start: datetime,
        sale_end: datetime,
        description: Optional[str] = None,
    ) -> 'TicketType':
        def invalid(message: str) -> InvalidRequestError:
            return InvalidRequestError(TicketingErrorCode.INVALID_TICKET_TYPE, message)

        name = name.strip()
        if not name:
            raise invalid('Ticket type name is required')
        if len(name) > MAX_NAME_LENGTH:
            raise invalid(f'Ticket type name must be at most {MAX_NAME_LENGTH} characters')
        if price < 0 or price > MAX_TICKET_PRICE:
            raise invalid(f'Price must be between 0 and {MAX_TICKET_PRICE}')
        if capacity < 1 or capacity > MAX_TICKET_CAPACITY:
            raise invalid(f'Capacity must be between 1 and {MAX_TICKET_CAPACITY}')
        if sale_start >= sale_end:
            raise invalid('Sale start must be before sale end')
        if sale_end - sale_start < MIN_SALE_WINDOW:
            raise invalid('Sale period must be at least 1 hour')

        return cls(
            id=id,
            event_id=event_id,
            name=name,
            description=description,
            price=price,
            capacity=capacity,
            sale_start=sale_start,
            sale_end=sale_end,
            created_at=datetime.now(timezone.utc),
        )
