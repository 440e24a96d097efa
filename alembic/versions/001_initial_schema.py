"""Initial schema: tracked flights, price observations, notifications

Revision ID: 001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '001'
down_revision = None
branch_labels = None
depends_on = None


trip_type = sa.Enum('ONE_WAY', 'ROUND_TRIP', name='triptype')
cabin_class = sa.Enum('ECONOMY', 'PREMIUM_ECONOMY', 'BUSINESS', 'FIRST', name='cabinclass')


def upgrade():
    op.create_table(
        'tracked_flights',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('origin', sa.String(3), nullable=False),
        sa.Column('destination', sa.String(3), nullable=False),
        sa.Column('airline', sa.String(100), nullable=False),
        sa.Column('travel_date', sa.Date(), nullable=False),
        sa.Column('return_date', sa.Date(), nullable=True),
        sa.Column('trip_type', trip_type, nullable=False, server_default='ONE_WAY'),
        sa.Column('cabin_class', cabin_class, nullable=False, server_default='ECONOMY'),
        sa.Column('num_passengers', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_tracked_flights_origin', 'tracked_flights', ['origin'])
    op.create_index('ix_tracked_flights_destination', 'tracked_flights', ['destination'])
    op.create_index('ix_tracked_flights_travel_date', 'tracked_flights', ['travel_date'])
    op.create_index('ix_tracked_flights_is_active', 'tracked_flights', ['is_active'])

    op.create_table(
        'price_observations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'flight_id', sa.Integer(),
            sa.ForeignKey('tracked_flights.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('base_fare', sa.Numeric(10, 2), nullable=True),
        sa.Column('taxes', sa.Numeric(10, 2), nullable=True),
        sa.Column('fees', sa.Numeric(10, 2), nullable=True),
        sa.Column('booking_link', sa.Text(), nullable=True),
        sa.Column('offer_id', sa.String(64), nullable=True),
        sa.Column('observed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_price_observations_flight_id', 'price_observations', ['flight_id'])
    op.create_index('ix_price_observations_observed_at', 'price_observations', ['observed_at'])

    op.create_table(
        'price_change_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'flight_id', sa.Integer(),
            sa.ForeignKey('tracked_flights.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('old_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('new_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='0'),
    )
    op.create_index(
        'ix_price_change_notifications_flight_id',
        'price_change_notifications',
        ['flight_id'],
    )


def downgrade():
    op.drop_table('price_change_notifications')
    op.drop_table('price_observations')
    op.drop_table('tracked_flights')
    trip_type.drop(op.get_bind(), checkfirst=True)
    cabin_class.drop(op.get_bind(), checkfirst=True)
