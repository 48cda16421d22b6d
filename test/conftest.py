"""
Test Configuration and Fixtures

- Unit tests (marked `unit`): AsyncMock doubles or the in-memory adapters, no I/O
- API tests: FastAPI TestClient over the in-memory backend
- Integration tests (marked `integration`): real PostgreSQL, skipped when unreachable
"""

# =============================================================================
# Environment setup MUST happen before any application import: Settings and
# the DI container read it at import time.
# =============================================================================
import os


def _early_setup_test_environment() -> None:
    os.environ['STORAGE_BACKEND'] = 'memory'
    os.environ.setdefault('POSTGRES_DB', 'ticket_reservation_test_db')
    os.environ['RESERVATION_SWEEP_ENABLED'] = 'false'
    os.environ['DEBUG'] = 'false'


_early_setup_test_environment()

from collections.abc import Generator  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.service.ticketing.domain.value_object.billing_info import BillingInfo  # noqa: E402


@pytest.fixture
def sale_window() -> tuple[datetime, datetime]:
    now = datetime.now(timezone.utc)
    return now - timedelta(hours=1), now + timedelta(days=7)


@pytest.fixture
def billing_info() -> BillingInfo:
    return BillingInfo(email='buyer@test.com', name='Test Buyer', card_token='tok_visa_4242')


@pytest.fixture(scope='session')
def client() -> Generator[TestClient, None, None]:
    from test.test_main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def memory_store(client: TestClient) -> Generator[Any, None, None]:
    """The store behind the API's in-memory adapters, emptied around each test."""
    from src.platform.config.di import container

    store = container.memory_store()
    store.clear()
    yield store
    store.clear()
