"""create_billing_tables

Revision ID: a1c4e7f2b9d3
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7f2b9d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('billing_accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('billing_period', sa.String(length=20), nullable=False),
        sa.Column('next_billing_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('region', sa.String(length=10), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_billing_accounts_user_id', 'billing_accounts', ['user_id'], unique=False)
    op.create_index('ix_billing_accounts_next_billing_date', 'billing_accounts', ['next_billing_date'], unique=False)

    op.create_table('regional_pricing',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('region', sa.String(length=10), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('pricing', sa.JSON(), nullable=False),
        sa.Column('taxes', sa.JSON(), nullable=False),
        sa.Column('effective_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('effective_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_regional_pricing_region', 'regional_pricing', ['region'], unique=False)

    op.create_table('volume_discounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('region', sa.String(length=10), nullable=False),
        sa.Column('usage_type', sa.String(length=20), nullable=False),
        sa.Column('tier_name', sa.String(length=100), nullable=False),
        sa.Column('min_usage', sa.Integer(), nullable=False),
        sa.Column('max_usage', sa.Integer(), nullable=True),
        sa.Column('discount_percent', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_volume_discounts_region', 'volume_discounts', ['region'], unique=False)

    op.create_table('invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('billing_account_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('subtotal', sa.Integer(), nullable=False),
        sa.Column('tax', sa.Integer(), nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('pdf_url', sa.Text(), nullable=True),
        sa.Column('pdf_generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['billing_account_id'], ['billing_accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)
    op.create_index('ix_invoices_billing_account_id', 'invoices', ['billing_account_id'], unique=False)
    op.create_index('ix_invoices_status', 'invoices', ['status'], unique=False)
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'], unique=False)

    op.create_table('invoice_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=True),
        sa.Column('number_id', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('usage_event_ids', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'], unique=False)

    op.create_table('usage_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('billing_account_id', sa.String(length=36), nullable=False),
        sa.Column('number_id', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.Integer(), nullable=False),
        sa.Column('total_cost', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('region', sa.String(length=10), nullable=True),
        sa.Column('from_number', sa.String(length=50), nullable=True),
        sa.Column('to_number', sa.String(length=50), nullable=True),
        sa.Column('event_metadata', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_invoiced', sa.Boolean(), nullable=False),
        sa.Column('invoice_item_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['billing_account_id'], ['billing_accounts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['invoice_item_id'], ['invoice_items.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_usage_events_billing_account_id', 'usage_events', ['billing_account_id'], unique=False)
    op.create_index('ix_usage_events_number_id', 'usage_events', ['number_id'], unique=False)
    op.create_index('ix_usage_events_timestamp', 'usage_events', ['timestamp'], unique=False)
    op.create_index('ix_usage_events_is_invoiced', 'usage_events', ['is_invoiced'], unique=False)

    op.create_table('billing_cycles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('billing_account_id', sa.String(length=36), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['billing_account_id'], ['billing_accounts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('billing_account_id', 'period_start', 'period_end', name='uq_billing_cycles_account_period')
    )
    op.create_index('ix_billing_cycles_billing_account_id', 'billing_cycles', ['billing_account_id'], unique=False)

    op.create_table('payment_methods',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('billing_account_id', sa.String(length=36), nullable=False),
        sa.Column('gateway', sa.String(length=50), nullable=False),
        sa.Column('gateway_payment_method_id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['billing_account_id'], ['billing_accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payment_methods_billing_account_id', 'payment_methods', ['billing_account_id'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('payment_method_id', sa.String(length=36), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('gateway', sa.String(length=50), nullable=False),
        sa.Column('gateway_charge_id', sa.String(length=255), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['payment_method_id'], ['payment_methods.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'], unique=False)
    op.create_index('ix_payments_gateway_charge_id', 'payments', ['gateway_charge_id'], unique=False)


def downgrade():
    op.drop_index('ix_payments_gateway_charge_id', table_name='payments')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_payment_methods_billing_account_id', table_name='payment_methods')
    op.drop_table('payment_methods')
    op.drop_index('ix_billing_cycles_billing_account_id', table_name='billing_cycles')
    op.drop_table('billing_cycles')
    op.drop_index('ix_usage_events_is_invoiced', table_name='usage_events')
    op.drop_index('ix_usage_events_timestamp', table_name='usage_events')
    op.drop_index('ix_usage_events_number_id', table_name='usage_events')
    op.drop_index('ix_usage_events_billing_account_id', table_name='usage_events')
    op.drop_table('usage_events')
    op.drop_index('ix_invoice_items_invoice_id', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_created_at', table_name='invoices')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_billing_account_id', table_name='invoices')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_volume_discounts_region', table_name='volume_discounts')
    op.drop_table('volume_discounts')
    op.drop_index('ix_regional_pricing_region', table_name='regional_pricing')
    op.drop_table('regional_pricing')
    op.drop_index('ix_billing_accounts_next_billing_date', table_name='billing_accounts')
    op.drop_index('ix_billing_accounts_user_id', table_name='billing_accounts')
    op.drop_table('billing_accounts')
