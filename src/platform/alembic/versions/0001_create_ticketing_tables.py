"""create_ticketing_tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- ticket_types: priced ticket classes with sold/held counters
- reservations: time-limited holds (UUID7)
- orders: purchases (UUID7)
- tickets: one row per admitted person, unique QR token
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables with final schema."""

    op.create_table(
        'ticket_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('sold', sa.Integer(), server_default='0', nullable=False),
        sa.Column('held', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sale_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sale_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('price >= 0', name='ck_ticket_types_price_not_negative'),
        sa.CheckConstraint('sold >= 0', name='ck_ticket_types_sold_not_negative'),
        sa.CheckConstraint('held >= 0', name='ck_ticket_types_held_not_negative'),
        sa.CheckConstraint('sold + held <= capacity', name='ck_ticket_types_no_oversell'),
    )
    op.create_index('ix_ticket_types_event_id', 'ticket_types', ['event_id'])

    op.create_table(
        'reservations',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['ticket_type_id'], ['ticket_types.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_reservations_ticket_type_id', 'reservations', ['ticket_type_id'])
    op.create_index('ix_reservations_user_id', 'reservations', ['user_id'])
    op.create_index('ix_reservations_status_expires_at', 'reservations', ['status', 'expires_at'])

    op.create_table(
        'orders',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_id', sa.String(length=255), nullable=True),
        sa.Column('reservation_id', UUID(as_uuid=True), nullable=True),
        sa.Column('billing_email', sa.String(length=255), nullable=False),
        sa.Column('billing_name', sa.String(length=255), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled', 'refunded')",
            name='ck_orders_status',
        ),
        sa.CheckConstraint('total_amount >= 0', name='ck_orders_total_amount_not_negative'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_event_id', 'orders', ['event_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'tickets',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), nullable=False),
        sa.Column('qr_code', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('qr_code'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['ticket_type_id'], ['ticket_types.id']),
    )
    op.create_index('ix_tickets_order_id', 'tickets', ['order_id'])
    op.create_index('ix_tickets_ticket_type_id', 'tickets', ['ticket_type_id'])
    op.create_index('ix_tickets_status', 'tickets', ['status'])


def downgrade() -> None:
    op.drop_table('tickets')
    op.drop_table('orders')
    op.drop_table('reservations')
    op.drop_table('ticket_types')
