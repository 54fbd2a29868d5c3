"""create users, shipments and tracking_events

Revision ID: 3c1f0a9d2b41
Revises:
Create Date: 2026-10-19 10:12:04.518220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role = sa.Enum('ADMIN', 'EMPLOYEE', name='role')
shipment_status = sa.Enum('PENDING', 'IN_TRANSIT', 'DELIVERED', 'CANCELLED', 'DELAYED', name='shipment_status')
shipment_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'URGENT', name='shipment_priority')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', role, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'shipments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shipper_name', sa.String(length=255), nullable=False),
        sa.Column('carrier_name', sa.String(length=255), nullable=False),
        sa.Column('pickup_location', sa.String(length=255), nullable=False),
        sa.Column('pickup_date', sa.Date(), nullable=False),
        sa.Column('delivery_location', sa.String(length=255), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=False),
        sa.Column('status', shipment_status, nullable=False),
        sa.Column('priority', shipment_priority, nullable=False),
        sa.Column('tracking_number', sa.String(length=50), nullable=False),
        sa.Column('rate', sa.Numeric(12, 2), nullable=False),
        sa.Column('weight', sa.Numeric(12, 2), nullable=False),
        sa.Column('dimensions', sa.String(length=100), nullable=False),
        sa.Column('special_instructions', sa.Text(), nullable=True),
        sa.Column('flagged', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['updated_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_shipments_id'), 'shipments', ['id'], unique=False)
    op.create_index(op.f('ix_shipments_shipper_name'), 'shipments', ['shipper_name'], unique=False)
    op.create_index(op.f('ix_shipments_carrier_name'), 'shipments', ['carrier_name'], unique=False)
    op.create_index(op.f('ix_shipments_status'), 'shipments', ['status'], unique=False)
    op.create_index(op.f('ix_shipments_priority'), 'shipments', ['priority'], unique=False)
    op.create_index(op.f('ix_shipments_tracking_number'), 'shipments', ['tracking_number'], unique=True)
    op.create_index(op.f('ix_shipments_flagged'), 'shipments', ['flagged'], unique=False)

    op.create_table(
        'tracking_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shipment_id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['shipment_id'], ['shipments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_tracking_events_id'), 'tracking_events', ['id'], unique=False)
    op.create_index(op.f('ix_tracking_events_shipment_id'), 'tracking_events', ['shipment_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_tracking_events_shipment_id'), table_name='tracking_events')
    op.drop_index(op.f('ix_tracking_events_id'), table_name='tracking_events')
    op.drop_table('tracking_events')

    for index in ('flagged', 'tracking_number', 'priority', 'status', 'carrier_name', 'shipper_name', 'id'):
        op.drop_index(op.f(f'ix_shipments_{index}'), table_name='shipments')
    op.drop_table('shipments')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')

    shipment_priority.drop(op.get_bind(), checkfirst=True)
    shipment_status.drop(op.get_bind(), checkfirst=True)
    role.drop(op.get_bind(), checkfirst=True)
