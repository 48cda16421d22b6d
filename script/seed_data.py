#!/usr/bin/env python3
"""
Database Seed Script

Creates the ticket types of one demo event through the inventory ledger, so
the same validation the API relies on applies to seeded rows.

Environment:
- EVENT_ID        event the ticket types belong to (default 1)
- SALE_DAYS       how long the sale window stays open (default 30)
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import os

from src.platform.config.di import container
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine
from src.service.ticketing.domain.entity.ticket_type_entity import TicketType


@dataclass
class TicketTypeConfig:
    name: str
    price: int  # minor units
    capacity: int
    description: str


TICKET_TYPES = [
    TicketTypeConfig(name='General Admission', price=2500, capacity=500, description='Standing'),
    TicketTypeConfig(name='Reserved', price=4500, capacity=200, description='Numbered seating'),
    TicketTypeConfig(name='VIP', price=12000, capacity=50, description='Front rows + lounge'),
]


async def seed_ticket_types(*, event_id: int, sale_days: int) -> list[TicketType]:
    ledger = container.inventory_ledger()
    now = datetime.now(timezone.utc)

    created = []
    for config in TICKET_TYPES:
        ticket_type = TicketType.create(
            id=0,
            event_id=event_id,
            name=config.name,
            price=config.price,
            capacity=config.capacity,
            sale_start=now - timedelta(minutes=5),
            sale_end=now + timedelta(days=sale_days),
            description=config.description,
        )
        stored = await ledger.create_ticket_type(ticket_type=ticket_type)
        print(f'   ✅ {stored.name} (id={stored.id}): {stored.capacity} @ {stored.price}')
        created.append(stored)
    return created


async def main() -> None:
    event_id = int(os.getenv('EVENT_ID', '1'))
    sale_days = int(os.getenv('SALE_DAYS', '30'))

    print(f'🌱 Seeding ticket types for event {event_id}...')
    print('=' * 50)
    try:
        await create_db_and_tables()
        await seed_ticket_types(event_id=event_id, sale_days=sale_days)
        print('=' * 50)
        print('✅ Seed completed!')
    except Exception as e:
        print(f'❌ Seed failed: {e}')
        raise SystemExit(1) from e
    finally:
        await dispose_engine()


if __name__ == '__main__':
    asyncio.run(main())
