from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType


class ListTicketTypesUseCase:
    """Ticket types of an event with their live counters; public, no caller check."""

    def __init__(self, *, inventory_ledger: IInventoryLedger) -> None:
        self.inventory_ledger = inventory_ledger

    @classmethod
    @inject
    def depends(
        cls,
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
    ) -> Self:
        return cls(inventory_ledger=inventory_ledger)

    @Logger.io
    async def list_ticket_types(self, *, event_id: int) -> list[TicketType]:
        return await self.inventory_ledger.list_ticket_types(event_id=event_id)
