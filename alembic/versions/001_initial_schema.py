"""Initial schema - inventory, bookings, availability overrides

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

Creates users, hotels, apartments, rooms, bookings and the per-day
availability tables. Every unit reference cascades on delete.

On PostgreSQL it also adds one exclusion constraint per booking target
column, so two active bookings on the same apartment (or the same room)
can never hold overlapping [check_in, check_out) ranges, whatever
process inserts them. Requires the btree_gist extension.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == 'postgresql'

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='USER'),
        *_timestamps(),
    )

    op.create_table(
        'hotels',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(300), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'apartments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('apartment_number', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_capacity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=True, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('rooms_bookable_separately', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_apartment_hotel', 'apartments', ['hotel_id'])

    op.create_table(
        'rooms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('apartment_id', sa.String(36), sa.ForeignKey('apartments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('room_number', sa.String(20), nullable=False),
        sa.Column('room_type', sa.String(20), nullable=True, server_default='DOUBLE'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=True, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('bookable_individually', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_room_hotel', 'rooms', ['hotel_id'])
    op.create_index('ix_room_apartment', 'rooms', ['apartment_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('booking_type', sa.String(20), nullable=False),
        sa.Column('apartment_id', sa.String(36), sa.ForeignKey('apartments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=True),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('check_out_date', sa.Date(), nullable=False),
        sa.Column('number_of_guests', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('payment_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('payment_transaction_id', sa.String(255), nullable=True),
        sa.Column('payment_completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(booking_type = 'APARTMENT' AND apartment_id IS NOT NULL AND room_id IS NULL) OR "
            "(booking_type = 'ROOM' AND room_id IS NOT NULL AND apartment_id IS NULL)",
            name='ck_booking_single_target'
        ),
        sa.CheckConstraint('check_in_date < check_out_date', name='ck_booking_date_order'),
        sa.CheckConstraint('number_of_guests > 0', name='ck_booking_guests_positive'),
    )
    op.create_index('ix_booking_apartment_dates', 'bookings', ['apartment_id', 'check_in_date', 'check_out_date'])
    op.create_index('ix_booking_room_dates', 'bookings', ['room_id', 'check_in_date', 'check_out_date'])
    op.create_index('ix_booking_user', 'bookings', ['user_id'])
    op.create_index('ix_booking_hotel', 'bookings', ['hotel_id'])
    op.create_index('ix_booking_created_at', 'bookings', ['created_at'])

    op.create_table(
        'apartment_availability',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('apartment_id', sa.String(36), sa.ForeignKey('apartments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('apartment_id', 'date', name='uq_apartment_availability_date'),
    )
    op.create_index(
        'ix_apartment_availability_blocked', 'apartment_availability',
        ['apartment_id', 'is_available', 'date']
    )

    op.create_table(
        'room_availability',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('room_id', 'date', name='uq_room_availability_date'),
    )
    op.create_index('ix_room_availability_blocked', 'room_availability', ['room_id', 'is_available', 'date'])

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute("""
            ALTER TABLE bookings
            ADD CONSTRAINT ex_booking_apartment_no_overlap
            EXCLUDE USING gist (
                apartment_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            )
            WHERE (apartment_id IS NOT NULL AND status IN ('PENDING', 'CONFIRMED'))
        """)
        op.execute("""
            ALTER TABLE bookings
            ADD CONSTRAINT ex_booking_room_no_overlap
            EXCLUDE USING gist (
                room_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            )
            WHERE (room_id IS NOT NULL AND status IN ('PENDING', 'CONFIRMED'))
        """)


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_booking_room_no_overlap")
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_booking_apartment_no_overlap")

    op.drop_table('room_availability')
    op.drop_table('apartment_availability')
    op.drop_table('bookings')
    op.drop_table('rooms')
    op.drop_table('apartments')
    op.drop_table('hotels')
    op.drop_table('users')
