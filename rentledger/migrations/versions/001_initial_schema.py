"""Initial schema: contracts, ownership, schedule and payment ledger.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-11-20 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create ledger tables."""
    # Create owners table
    op.create_table(
        'owners',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_owners_tenant_id', 'owners', ['tenant_id'])
    op.create_index('idx_owner_tenant_name', 'owners', ['tenant_id', 'full_name'])

    # Create properties table
    op.create_table(
        'properties',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('address', sa.String(300), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_properties_tenant_id', 'properties', ['tenant_id'])
    op.create_index('idx_property_tenant_name', 'properties', ['tenant_id', 'name'])

    # Create ownership_shares table
    op.create_table(
        'ownership_shares',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('share_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ownership_shares_tenant_id', 'ownership_shares', ['tenant_id'])
    op.create_index('ix_ownership_shares_owner_id', 'ownership_shares', ['owner_id'])
    op.create_index('ix_ownership_shares_property_id', 'ownership_shares', ['property_id'])
    op.create_index('idx_share_property_dates', 'ownership_shares', ['property_id', 'start_date', 'end_date'])

    # Create contracts table
    op.create_table(
        'contracts',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('item_a', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('item_b', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('item_a_method', sa.String(20), nullable=False),
        sa.Column('item_a_method_detail', sa.String(200), nullable=True),
        sa.Column('item_b_method', sa.String(20), nullable=False),
        sa.Column('item_b_method_detail', sa.String(200), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('renter_name', sa.String(200), nullable=True),
        sa.Column('renter_email', sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contracts_tenant_id', 'contracts', ['tenant_id'])
    op.create_index('ix_contracts_property_id', 'contracts', ['property_id'])
    op.create_index('ix_contracts_status', 'contracts', ['status'])
    op.create_index('idx_contract_tenant_status', 'contracts', ['tenant_id', 'status'])

    # Create scheduled_items table (completing event FK added after payment_events)
    op.create_table(
        'scheduled_items',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('contract_id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('item', sa.String(1), nullable=False),
        sa.Column('period_date', sa.Date(), nullable=False),
        sa.Column('owner_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('original_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('expected_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('accumulated_paid_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('completing_event_id', sa.Integer(), nullable=True),
        sa.Column('schedule_version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], ),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'tenant_id', 'contract_id', 'item', 'period_date', 'owner_id', 'schedule_version',
            name='uq_scheduled_item_key',
        ),
    )
    op.create_index('ix_scheduled_items_tenant_id', 'scheduled_items', ['tenant_id'])
    op.create_index('ix_scheduled_items_contract_id', 'scheduled_items', ['contract_id'])
    op.create_index('ix_scheduled_items_owner_id', 'scheduled_items', ['owner_id'])
    op.create_index('ix_scheduled_items_period_date', 'scheduled_items', ['period_date'])
    op.create_index('ix_scheduled_items_status', 'scheduled_items', ['status'])
    op.create_index('idx_scheduled_item_contract_period', 'scheduled_items', ['contract_id', 'period_date'])

    # Create payment_events table
    op.create_table(
        'payment_events',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('scheduled_item_id', sa.Integer(), nullable=False),
        sa.Column('contract_id', sa.Integer(), nullable=False),
        sa.Column('paid_date', sa.Date(), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_currency', sa.String(3), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('payment_method_detail', sa.String(200), nullable=True),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column('converted_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('contract_currency', sa.String(3), nullable=False),
        sa.Column('resulting_status', sa.String(20), nullable=False),
        sa.ForeignKeyConstraint(['scheduled_item_id'], ['scheduled_items.id'], ),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_events_tenant_id', 'payment_events', ['tenant_id'])
    op.create_index('ix_payment_events_scheduled_item_id', 'payment_events', ['scheduled_item_id'])
    op.create_index('ix_payment_events_contract_id', 'payment_events', ['contract_id'])
    op.create_index('ix_payment_events_paid_date', 'payment_events', ['paid_date'])
    op.create_index('idx_payment_event_contract_date', 'payment_events', ['contract_id', 'paid_date'])

    with op.batch_alter_table('scheduled_items') as batch_op:
        batch_op.create_foreign_key(
            'fk_scheduled_item_completing_event',
            'payment_events',
            ['completing_event_id'],
            ['id'],
        )

    # Create exchange_rates table
    op.create_table(
        'exchange_rates',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('rate_date', sa.Date(), nullable=False),
        sa.Column('source_type', sa.String(20), nullable=False),
        sa.Column('buy_rate', sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column('sell_rate', sa.Numeric(precision=14, scale=4), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'rate_date', 'source_type', name='uq_exchange_rate_day'),
    )
    op.create_index('ix_exchange_rates_tenant_id', 'exchange_rates', ['tenant_id'])
    op.create_index('ix_exchange_rates_rate_date', 'exchange_rates', ['rate_date'])

    # Create payment_receipts table
    op.create_table(
        'payment_receipts',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('payment_event_id', sa.Integer(), nullable=False),
        sa.Column('contract_id', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(40), nullable=False),
        sa.Column('receipt_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['payment_event_id'], ['payment_events.id'], ),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_event_id'),
        sa.UniqueConstraint('tenant_id', 'receipt_number', name='uq_receipt_number'),
    )
    op.create_index('ix_payment_receipts_tenant_id', 'payment_receipts', ['tenant_id'])
    op.create_index('ix_payment_receipts_contract_id', 'payment_receipts', ['contract_id'])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('payment_receipts')
    op.drop_table('exchange_rates')
    with op.batch_alter_table('scheduled_items') as batch_op:
        batch_op.drop_constraint('fk_scheduled_item_completing_event', type_='foreignkey')
    op.drop_table('payment_events')
    op.drop_table('scheduled_items')
    op.drop_table('contracts')
    op.drop_table('ownership_shares')
    op.drop_table('properties')
    op.drop_table('owners')
