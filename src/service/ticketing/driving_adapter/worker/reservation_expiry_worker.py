"""
Reservation expiry sweep.

Runs `ExpireReservationsUseCase` on a fixed interval inside the application's
anyio task group. A failed sweep is logged and the next one still runs.
"""

import anyio
from anyio.abc import TaskGroup

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.expire_reservations_use_case import (
    ExpireReservationsUseCase,
)


class ReservationExpiryWorker:
    def __init__(self, *, use_case: ExpireReservationsUseCase, interval_seconds: float) -> None:
        self.use_case = use_case
        self.interval_seconds = interval_seconds
        self.running = False

    async def start(self, *, task_group: TaskGroup) -> None:
        self.running = True
        task_group.start_soon(self._run)
        Logger.base.info(
            f'⏰ [EXPIRY] Sweeping expired reservations every {self.interval_seconds}s'
        )

    def stop(self) -> None:
        self.running = False

    async def sweep_once(self) -> int:
        try:
            return await self.use_case.expire()
        except Exception as e:
            Logger.base.exception(f'❌ [EXPIRY] Sweep failed: {e}')
            return 0

    async def _run(self) -> None:
        while self.running:
            await self.sweep_once()
            await anyio.sleep(self.interval_seconds)
