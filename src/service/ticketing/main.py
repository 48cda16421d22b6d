"""
Production FastAPI Application

HTTP API plus the reservation expiry sweep running in the lifespan task group.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import StorageBackend, settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import (
    create_db_and_tables,
    dispose_engine,
    get_engine,
)
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.ticketing.app.command.expire_reservations_use_case import (
    ExpireReservationsUseCase,
)
from src.service.ticketing.driving_adapter.worker.reservation_expiry_worker import (
    ReservationExpiryWorker,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Ticketing Service] Starting up...')

    tracing = TracingConfig(service_name='ticketing-service')
    tracing.setup()
    Logger.base.info('📊 [Ticketing Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ticketing Service] Dependency injection wired')

    if settings.STORAGE_BACKEND == StorageBackend.POSTGRES:
        engine = get_engine()
        tracing.instrument_sqlalchemy(engine=engine)
        await create_db_and_tables()
        Logger.base.info('🗄️  [Ticketing Service] Database engine ready + instrumented')
    else:
        Logger.base.info('🧠 [Ticketing Service] Using in-memory storage')

    async with anyio.create_task_group() as tg:
        worker = None
        if settings.RESERVATION_SWEEP_ENABLED:
            worker = ReservationExpiryWorker(
                use_case=ExpireReservationsUseCase(reservation_repo=container.reservation_repo()),
                interval_seconds=settings.RESERVATION_SWEEP_INTERVAL_SECONDS,
            )
            await worker.start(task_group=tg)

        Logger.base.info('✅ [Ticketing Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Ticketing Service] Shutting down...')
        if worker:
            worker.stop()
        tg.cancel_scope.cancel()

    if settings.STORAGE_BACKEND == StorageBackend.POSTGRES:
        await dispose_engine()
        Logger.base.info('🗄️  [Ticketing Service] Database engine disposed')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Ticketing Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
