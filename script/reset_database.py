#!/usr/bin/env python3
"""
Database Reset Script

1. Drop every ticketing table (tickets, orders, reservations, ticket_types)
2. Run `alembic upgrade head` to recreate the schema

Does not seed data; run `python -m script.seed_data` afterwards.
"""

import asyncio

from alembic import command
from alembic.config import Config
from sqlalchemy import text

from src.platform.config.core_setting import settings
from src.platform.constant.path import ALEMBIC_INI
from src.platform.database.orm_db_setting import dispose_engine, drop_db_tables, get_engine


async def _drop_alembic_version() -> None:
    async with get_engine().begin() as conn:
        await conn.execute(text('DROP TABLE IF EXISTS alembic_version'))


def _run_alembic_migrations() -> None:
    print("   🔄 Running 'alembic upgrade head'...")
    command.upgrade(Config(str(ALEMBIC_INI)), 'head')
    print('   ✅ Database migrations completed')


async def main() -> None:
    print('🔄 Starting database reset...')
    print(f'Database: {settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}')
    print('=' * 50)

    try:
        print('🗑️ Dropping ticketing tables...')
        await drop_db_tables()
        await _drop_alembic_version()
        await dispose_engine()

        print('🏗️ Running database migrations...')
        # alembic's env.py runs its own event loop
        await asyncio.to_thread(_run_alembic_migrations)

        print('=' * 50)
        print('✅ Database reset completed!')
        print('💡 To seed ticket types, run: python -m script.seed_data')
    except Exception as e:
        print(f'❌ Reset failed: {e}')
        raise SystemExit(1) from e


if __name__ == '__main__':
    asyncio.run(main())
