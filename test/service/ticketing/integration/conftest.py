"""
PostgreSQL fixtures

Tests here talk to the database named by POSTGRES_* settings and are skipped
when it cannot be reached. Tables are created on first use and truncated
before every test.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.platform.database.orm_db_setting import (
    Database,
    create_db_and_tables,
    dispose_engine,
)


TABLES = 'tickets, orders, reservations, ticket_types'


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    try:
        await create_db_and_tables()
    except (OSError, SQLAlchemyError) as e:
        await dispose_engine()
        pytest.skip(f'PostgreSQL not reachable: {e}')

    db = Database()
    async with db.session() as session:
        await session.execute(text(f'TRUNCATE {TABLES} RESTART IDENTITY CASCADE'))
        await session.commit()

    yield db
    await dispose_engine()
