"""Fresh in-memory adapters per test, wired the same way the container wires them."""

import attrs
import pytest

from src.service.ticketing.app.command.expire_reservations_use_case import (
    ExpireReservationsUseCase,
)
from src.service.ticketing.app.command.purchase_tickets_use_case import PurchaseTicketsUseCase
from src.service.ticketing.app.command.refund_order_use_case import RefundOrderUseCase
from src.service.ticketing.app.command.release_reservation_use_case import (
    ReleaseReservationUseCase,
)
from src.service.ticketing.app.command.reserve_tickets_use_case import ReserveTicketsUseCase
from src.service.ticketing.app.command.use_ticket_use_case import UseTicketUseCase
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


@attrs.define
class TicketingSystem:
    store: InMemoryStore
    inventory_ledger: InMemoryInventoryLedger
    reservation_repo: InMemoryReservationRepo
    order_repo: InMemoryOrderRepo
    ticket_repo: InMemoryTicketRepo
    notification_sender: MockEmailSender
    reserve: ReserveTicketsUseCase
    release: ReleaseReservationUseCase
    expire: ExpireReservationsUseCase
    purchase: PurchaseTicketsUseCase
    refund: RefundOrderUseCase
    use_ticket: UseTicketUseCase


@pytest.fixture
def system() -> TicketingSystem:
    store = InMemoryStore()
    inventory_ledger = InMemoryInventoryLedger(store=store)
    reservation_repo = InMemoryReservationRepo(store=store)
    order_repo = InMemoryOrderRepo(store=store)
    ticket_repo = InMemoryTicketRepo(store=store)
    payment_gateway = MockPaymentGateway()
    notification_sender = MockEmailSender(renderer=PlainNotificationRenderer())

    return TicketingSystem(
        store=store,
        inventory_ledger=inventory_ledger,
        reservation_repo=reservation_repo,
        order_repo=order_repo,
        ticket_repo=ticket_repo,
        notification_sender=notification_sender,
        reserve=ReserveTicketsUseCase(
            inventory_ledger=inventory_ledger, reservation_repo=reservation_repo
        ),
        release=ReleaseReservationUseCase(reservation_repo=reservation_repo),
        expire=ExpireReservationsUseCase(reservation_repo=reservation_repo),
        purchase=PurchaseTicketsUseCase(
            inventory_ledger=inventory_ledger,
            reservation_repo=reservation_repo,
            order_repo=order_repo,
            payment_gateway=payment_gateway,
            qr_code_generator=SecureQrCodeGenerator(),
            notification_sender=notification_sender,
        ),
        refund=RefundOrderUseCase(
            order_repo=order_repo,
            ticket_repo=ticket_repo,
            inventory_ledger=inventory_ledger,
            payment_gateway=payment_gateway,
            notification_sender=notification_sender,
        ),
        use_ticket=UseTicketUseCase(ticket_repo=ticket_repo, order_repo=order_repo),
    )
