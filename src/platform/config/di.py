"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/providers/selector.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.service.ticketing.driven_adapter.memory.in_memory_inventory_ledger import (
    InMemoryInventoryLedger,
)
from src.service.ticketing.driven_adapter.memory.in_memory_order_repo import InMemoryOrderRepo
from src.service.ticketing.driven_adapter.memory.in_memory_reservation_repo import (
    InMemoryReservationRepo,
)
from src.service.ticketing.driven_adapter.memory.in_memory_store import InMemoryStore
from src.service.ticketing.driven_adapter.memory.in_memory_ticket_repo import InMemoryTicketRepo
from src.service.ticketing.driven_adapter.notification.mock_email_sender import MockEmailSender
from src.service.ticketing.driven_adapter.notification.plain_notification_renderer import (
    PlainNotificationRenderer,
)
from src.service.ticketing.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway
from src.service.ticketing.driven_adapter.qr.secure_qr_code_generator import (
    SecureQrCodeGenerator,
)
from src.service.ticketing.driven_adapter.repo.inventory_ledger_impl import InventoryLedgerImpl
from src.service.ticketing.driven_adapter.repo.order_repo_impl import OrderRepoImpl
from src.service.ticketing.driven_adapter.repo.reservation_repo_impl import ReservationRepoImpl
from src.service.ticketing.driven_adapter.repo.ticket_repo_impl import TicketRepoImpl


def _storage_backend(config: Settings) -> str:
    return config.STORAGE_BACKEND.value


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)
    storage_backend = providers.Callable(_storage_backend, config_service)

    # Storage backends
    database = providers.Singleton(Database)
    memory_store = providers.Singleton(InMemoryStore)

    # Repositories (stateless - postgres ones open a session per call)
    inventory_ledger = providers.Selector(
        storage_backend,
        postgres=providers.Singleton(
            InventoryLedgerImpl, session_factory=database.provided.session
        ),
        memory=providers.Singleton(InMemoryInventoryLedger, store=memory_store),
    )
    reservation_repo = providers.Selector(
        storage_backend,
        postgres=providers.Singleton(
            ReservationRepoImpl, session_factory=database.provided.session
        ),
        memory=providers.Singleton(InMemoryReservationRepo, store=memory_store),
    )
    order_repo = providers.Selector(
        storage_backend,
        postgres=providers.Singleton(OrderRepoImpl, session_factory=database.provided.session),
        memory=providers.Singleton(InMemoryOrderRepo, store=memory_store),
    )
    ticket_repo = providers.Selector(
        storage_backend,
        postgres=providers.Singleton(TicketRepoImpl, session_factory=database.provided.session),
        memory=providers.Singleton(InMemoryTicketRepo, store=memory_store),
    )

    # External capabilities
    payment_gateway = providers.Singleton(MockPaymentGateway)
    qr_code_generator = providers.Singleton(SecureQrCodeGenerator)
    notification_renderer = providers.Singleton(PlainNotificationRenderer)
    notification_sender = providers.Singleton(MockEmailSender, renderer=notification_renderer)


container = Container()


def cleanup() -> None:
    container.reset_singletons()
