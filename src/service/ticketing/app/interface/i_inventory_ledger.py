"""
Inventory Ledger Interface

Authoritative per-ticket-type counters. Every operation is atomic with respect
to other operations on the same ticket type; operations on different ticket
types never contend.
"""

from abc import ABC, abstractmethod

from src.service.ticketing.domain.entity.ticket_type_entity import TicketType


class IInventoryLedger(ABC):
    @abstractmethod
    async def create_ticket_type(self, *, ticket_type: TicketType) -> TicketType:
        """
        Register a ticket type with zero sold and zero held

        Returns:
            The stored ticket type (id assigned by the store when 0)
        """
        pass

    @abstractmethod
    async def get_ticket_type(self, *, ticket_type_id: int) -> TicketType | None:
        """Snapshot of a ticket type and its counters, or None"""
        pass

    @abstractmethod
    async def list_ticket_types(self, *, event_id: int) -> list[TicketType]:
        pass

    @abstractmethod
    async def try_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        """
        Move `quantity` units into `held` if `sold + held + quantity <= capacity`

        Fails closed: either the whole quantity is held or nothing changes.

        Returns:
            Ticket type snapshot after the hold

        Raises:
            TicketingNotFoundError: Unknown ticket type
            InventoryError(SOLD_OUT): Nothing left
            InventoryError(INSUFFICIENT_INVENTORY): Fewer left than requested
        """
        pass

    @abstractmethod
    async def release_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        """
        Return held units to availability

        Raises:
            InventoryError(LEDGER_UNDERFLOW): More released than held
        """
        pass

    @abstractmethod
    async def commit_hold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        """
        Convert held units into sold units

        Raises:
            InventoryError(LEDGER_UNDERFLOW): More committed than held
        """
        pass

    @abstractmethod
    async def release_sold(self, *, ticket_type_id: int, quantity: int) -> TicketType:
        """
        Return sold units to availability (refund path only)

        Raises:
            InventoryError(LEDGER_UNDERFLOW): More released than sold
        """
        pass
