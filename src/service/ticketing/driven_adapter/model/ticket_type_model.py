from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class TicketTypeModel(Base):
    __tablename__ = 'ticket_types'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # minor units
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    held: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    sale_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sale_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint('price >= 0', name='ck_ticket_types_price_not_negative'),
        CheckConstraint('sold >= 0', name='ck_ticket_types_sold_not_negative'),
        CheckConstraint('held >= 0', name='ck_ticket_types_held_not_negative'),
        CheckConstraint('sold + held <= capacity', name='ck_ticket_types_no_oversell'),
    )
