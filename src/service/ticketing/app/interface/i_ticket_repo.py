from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus


class ITicketRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, ticket_id: UUID) -> Ticket | None:
        pass

    @abstractmethod
    async def get_by_qr_code(self, *, qr_code: str) -> Ticket | None:
        pass

    @abstractmethod
    async def list_by_order(self, *, order_id: UUID) -> list[Ticket]:
        pass

    @abstractmethod
    async def list_by_user(self, *, user_id: int) -> list[Ticket]:
        """Tickets of every order placed by `user_id`"""
        pass

    @abstractmethod
    async def list_by_event(self, *, event_id: int) -> list[Ticket]:
        """Tickets of every order for `event_id`, newest first"""
        pass

    @abstractmethod
    async def transition_status(
        self, *, ticket_id: UUID, expected: TicketStatus, new_status: TicketStatus
    ) -> Ticket | None:
        """
        Compare-and-swap on ticket status

        Returns:
            Updated ticket, or None when the ticket was not in `expected`
        """
        pass
