from datetime import datetime, timedelta, timezone
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_reservation_repo import IReservationRepo
from src.service.ticketing.domain.entity.reservation_entity import Reservation
from src.service.ticketing.domain.error.ticketing_errors import (
    TicketingError,
    TicketingNotFoundError,
)


tracer = trace.get_tracer(__name__)


class ReserveTicketsUseCase:
    """
    Hold tickets for a buyer for a limited time.

    Flow:
    1. Validate quantity (1..MAX_TICKETS_PER_RESERVATION) and the sale window
    2. Take the hold in the ledger (single atomic try_hold)
    3. Persist the reservation; if that fails the hold is given back
    """

    def __init__(
        self,
        *,
        inventory_ledger: IInventoryLedger,
        reservation_repo: IReservationRepo,
        reservation_ttl: timedelta | None = None,
        max_tickets_per_reservation: int | None = None,
    ) -> None:
        self.inventory_ledger = inventory_ledger
        self.reservation_repo = reservation_repo
        self.reservation_ttl = reservation_ttl or timedelta(
            minutes=settings.RESERVATION_TTL_MINUTES
        )
        self.max_tickets_per_reservation = (
            max_tickets_per_reservation or settings.MAX_TICKETS_PER_RESERVATION
        )

    @classmethod
    @inject
    def depends(
        cls,
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
    ) -> Self:
        return cls(inventory_ledger=inventory_ledger, reservation_repo=reservation_repo)

    @Logger.io
    async def reserve(self, *, ticket_type_id: int, quantity: int, user_id: int) -> Reservation:
        with tracer.start_as_current_span('use_case.reserve_tickets') as span:
            span.set_attribute('ticket_type_id', ticket_type_id)
            span.set_attribute('quantity', quantity)
            try:
                reservation = await self._reserve(
                    ticket_type_id=ticket_type_id, quantity=quantity, user_id=user_id
                )
            except TicketingError as e:
                metrics.record_reservation(ticket_type_id=ticket_type_id, result=e.code.value)
                raise
            metrics.record_reservation(ticket_type_id=ticket_type_id, result='success')
            span.set_attribute('reservation.id', str(reservation.id))
            return reservation

    async def _reserve(self, *, ticket_type_id: int, quantity: int, user_id: int) -> Reservation:
        Reservation.validate_quantity(quantity, max_quantity=self.max_tickets_per_reservation)

        ticket_type = await self.inventory_ledger.get_ticket_type(ticket_type_id=ticket_type_id)
        if ticket_type is None:
            raise TicketingNotFoundError(f'Ticket type {ticket_type_id} not found')

        now = datetime.now(timezone.utc)
        ticket_type.ensure_on_sale(now)

        held = await self.inventory_ledger.try_hold(
            ticket_type_id=ticket_type_id, quantity=quantity
        )
        reservation = Reservation.create(
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            user_id=user_id,
            ttl=self.reservation_ttl,
            max_quantity=self.max_tickets_per_reservation,
            now=now,
        )
        try:
            reservation = await self.reservation_repo.create(reservation=reservation)
        except Exception:
            # Not yet visible to anyone: hand the hold straight back
            await self.inventory_ledger.release_hold(
                ticket_type_id=ticket_type_id, quantity=quantity
            )
            raise

        metrics.set_held(ticket_type_id=ticket_type_id, held=held.held)
        Logger.base.info(
            f'🎫 [RESERVE] {reservation.id}: {quantity} x {ticket_type.name} '
            f'for user {user_id}, expires {reservation.expires_at.isoformat()}'
        )
        return reservation
