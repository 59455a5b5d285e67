"""create sharing tables

Revision ID: 3f9a1c6d2e71
Revises:
Create Date: 2026-10-19 09:12:44.201377

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c6d2e71'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('hospitals',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('organization', sa.String(length=200), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('equipment',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('owner_id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('manufacturer', sa.String(length=200), nullable=True),
    sa.Column('serial_number', sa.String(length=100), nullable=True),
    sa.Column('location', sa.String(length=200), nullable=True),
    sa.Column('daily_rate', sa.Float(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['owner_id'], ['hospitals.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_equipment_owner_id'), 'equipment', ['owner_id'], unique=False)

    op.create_table('equipment_requests',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('equipment_id', sa.String(length=36), nullable=False),
    sa.Column('requesting_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('owning_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('request_type', sa.Enum('borrow', 'lease', 'purchase', name='requesttype'), nullable=False),
    sa.Column('status', sa.Enum('pending', 'approved', 'rejected', 'cancelled', 'in_transit', 'active', 'completed', name='requeststatus'), nullable=False),
    sa.Column('start_date', sa.Date(), nullable=False),
    sa.Column('end_date', sa.Date(), nullable=False),
    sa.Column('purpose', sa.Text(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('urgency', sa.Enum('low', 'normal', 'high', 'critical', name='urgency'), nullable=False),
    sa.Column('response_notes', sa.Text(), nullable=True),
    sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.CheckConstraint('requesting_tenant_id <> owning_tenant_id', name='ck_request_distinct_tenants'),
    sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id'], ),
    sa.ForeignKeyConstraint(['owning_tenant_id'], ['hospitals.id'], ),
    sa.ForeignKeyConstraint(['requesting_tenant_id'], ['hospitals.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_equipment_requests_equipment_id'), 'equipment_requests', ['equipment_id'], unique=False)
    op.create_index(op.f('ix_equipment_requests_owning_tenant_id'), 'equipment_requests', ['owning_tenant_id'], unique=False)
    op.create_index(op.f('ix_equipment_requests_requesting_tenant_id'), 'equipment_requests', ['requesting_tenant_id'], unique=False)
    op.create_index(op.f('ix_equipment_requests_status'), 'equipment_requests', ['status'], unique=False)

    op.create_table('sharing_agreements',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('request_id', sa.String(length=36), nullable=False),
    sa.Column('equipment_id', sa.String(length=36), nullable=False),
    sa.Column('lender_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('borrower_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('terms', sa.Text(), nullable=True),
    sa.Column('daily_rate', sa.Float(), nullable=False),
    sa.Column('deposit_amount', sa.Float(), nullable=False),
    sa.Column('insurance_required', sa.Boolean(), nullable=False),
    sa.Column('maintenance_responsibility', sa.String(length=50), nullable=False),
    sa.Column('start_date', sa.Date(), nullable=False),
    sa.Column('end_date', sa.Date(), nullable=False),
    sa.Column('status', sa.Enum('draft', 'active', 'completed', 'terminated', 'disputed', name='agreementstatus'), nullable=False),
    sa.Column('signed_by_lender', sa.Boolean(), nullable=False),
    sa.Column('signed_by_borrower', sa.Boolean(), nullable=False),
    sa.Column('termination_reason', sa.Text(), nullable=True),
    sa.Column('dispute_reason', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['borrower_tenant_id'], ['hospitals.id'], ),
    sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id'], ),
    sa.ForeignKeyConstraint(['lender_tenant_id'], ['hospitals.id'], ),
    sa.ForeignKeyConstraint(['request_id'], ['equipment_requests.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sharing_agreements_borrower_tenant_id'), 'sharing_agreements', ['borrower_tenant_id'], unique=False)
    op.create_index(op.f('ix_sharing_agreements_lender_tenant_id'), 'sharing_agreements', ['lender_tenant_id'], unique=False)
    # Höchstens eine Vereinbarung pro Anfrage
    op.create_index(op.f('ix_sharing_agreements_request_id'), 'sharing_agreements', ['request_id'], unique=True)
    op.create_index(op.f('ix_sharing_agreements_status'), 'sharing_agreements', ['status'], unique=False)

    op.create_table('equipment_transfers',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('request_id', sa.String(length=36), nullable=False),
    sa.Column('agreement_id', sa.String(length=36), nullable=True),
    sa.Column('equipment_id', sa.String(length=36), nullable=False),
    sa.Column('from_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('to_tenant_id', sa.String(length=36), nullable=False),
    sa.Column('transfer_type', sa.Enum('outgoing', 'incoming', 'return', name='transfertype'), nullable=False),
    sa.Column('status', sa.Enum('scheduled', 'picked_up', 'in_transit', 'delivered', 'returned', 'cancelled', name='transferstatus'), nullable=False),
    sa.Column('scheduled_date', sa.Date(), nullable=False),
    sa.Column('pickup_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('return_scheduled_date', sa.Date(), nullable=True),
    sa.Column('return_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('condition_on_pickup', sa.Text(), nullable=True),
    sa.Column('condition_on_delivery', sa.Text(), nullable=True),
    sa.Column('tracking_number', sa.String(length=100), nullable=True),
    sa.Column('carrier', sa.String(length=100), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['agreement_id'], ['sharing_agreements.id'], ),
    sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id'], ),
    sa.ForeignKeyConstraint(['from_tenant_id'], ['hospitals.id'], ),
    sa.ForeignKeyConstraint(['request_id'], ['equipment_requests.id'], ),
    sa.ForeignKeyConstraint(['to_tenant_id'], ['hospitals.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_equipment_transfers_agreement_id'), 'equipment_transfers', ['agreement_id'], unique=False)
    op.create_index(op.f('ix_equipment_transfers_from_tenant_id'), 'equipment_transfers', ['from_tenant_id'], unique=False)
    op.create_index(op.f('ix_equipment_transfers_request_id'), 'equipment_transfers', ['request_id'], unique=False)
    op.create_index(op.f('ix_equipment_transfers_status'), 'equipment_transfers', ['status'], unique=False)
    op.create_index(op.f('ix_equipment_transfers_to_tenant_id'), 'equipment_transfers', ['to_tenant_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_equipment_transfers_to_tenant_id'), table_name='equipment_transfers')
    op.drop_index(op.f('ix_equipment_transfers_status'), table_name='equipment_transfers')
    op.drop_index(op.f('ix_equipment_transfers_request_id'), table_name='equipment_transfers')
    op.drop_index(op.f('ix_equipment_transfers_from_tenant_id'), table_name='equipment_transfers')
    op.drop_index(op.f('ix_equipment_transfers_agreement_id'), table_name='equipment_transfers')
    op.drop_table('equipment_transfers')
    op.drop_index(op.f('ix_sharing_agreements_status'), table_name='sharing_agreements')
    op.drop_index(op.f('ix_sharing_agreements_request_id'), table_name='sharing_agreements')
    op.drop_index(op.f('ix_sharing_agreements_lender_tenant_id'), table_name='sharing_agreements')
    op.drop_index(op.f('ix_sharing_agreements_borrower_tenant_id'), table_name='sharing_agreements')
    op.drop_table('sharing_agreements')
    op.drop_index(op.f('ix_equipment_requests_status'), table_name='equipment_requests')
    op.drop_index(op.f('ix_equipment_requests_requesting_tenant_id'), table_name='equipment_requests')
    op.drop_index(op.f('ix_equipment_requests_owning_tenant_id'), table_name='equipment_requests')
    op.drop_index(op.f('ix_equipment_requests_equipment_id'), table_name='equipment_requests')
    op.drop_table('equipment_requests')
    op.drop_index(op.f('ix_equipment_owner_id'), table_name='equipment')
    op.drop_table('equipment')
    op.drop_table('hospitals')
