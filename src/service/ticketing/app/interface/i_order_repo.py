from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.order_status import OrderStatus


class IOrderRepo(ABC):
    @abstractmethod
    async def create(self, *, order: Order) -> Order:
        pass

    @abstractmethod
    async def get_by_id(self, *, order_id: UUID) -> Order | None:
        pass

    @abstractmethod
    async def list_by_user(self, *, user_id: int) -> list[Order]:
        pass

    @abstractmethod
    async def update_status(
        self, *, order_id: UUID, expected: OrderStatus, new_status: OrderStatus
    ) -> Order | None:
        """
        Compare-and-swap on order status

        Returns:
            Updated order, or None when the order was not in `expected`
        """
        pass

    @abstractmethod
    async def complete_order_and_issue_tickets(
        self,
        *,
        order: Order,
        tickets: list[Ticket],
        quantities: dict[int, int],
        reservation_id: UUID | None = None,
    ) -> Order:
        """
        Atomically finish a paid order (single transaction)

        1. Order PENDING -> COMPLETED with `order.payment_id`
        2. Insert `tickets` as ACTIVE
        3. commit_hold(ticket_type_id, qty) for each entry of `quantities`
        4. When `reservation_id` is given, reservation ACTIVE -> CONSUMED

        Either all of it is visible or none of it.

        Raises:
            InventoryError(RESERVATION_EXPIRED): Reservation no longer ACTIVE
        """
        pass
