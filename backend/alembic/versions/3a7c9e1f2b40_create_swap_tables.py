"""create_swap_tables

Revision ID: 3a7c9e1f2b40
Revises: 
Create Date: 2026-10-19 10:12:41.503127

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1f2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'currencies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('network', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('contract_address', sa.String(255), nullable=True),
        sa.Column('decimals', sa.Integer(), nullable=True),
        sa.Column('requires_extra_id', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('extra_id_name', sa.String(50), nullable=True),
        sa.Column('min_amount', sa.Float(), nullable=True),
        sa.Column('max_amount', sa.Float(), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('symbol', 'network', name='uq_currencies_symbol_network'),
    )
    op.create_index('ix_currencies_id', 'currencies', ['id'])
    op.create_index('ix_currencies_symbol', 'currencies', ['symbol'])
    op.create_index('ix_currencies_network', 'currencies', ['network'])
    op.create_index('ix_currencies_last_synced_at', 'currencies', ['last_synced_at'])

    op.create_table(
        'providers',
        sa.Column('id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('kyc_rating', sa.String(5), nullable=True),
        sa.Column('insurance_percentage', sa.Float(), nullable=True),
        sa.Column('eta_minutes', sa.Integer(), nullable=True),
        sa.Column('markup_enabled', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('api_url', sa.String(500), nullable=True),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('website_url', sa.String(500), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_providers_name', 'providers', ['name'])
    op.create_index('ix_providers_last_synced_at', 'providers', ['last_synced_at'])

    op.create_table(
        'swaps',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('provider_id', sa.String(100), nullable=False),
        sa.Column('provider_swap_id', sa.String(100), nullable=True),
        sa.Column('from_currency', sa.String(20), nullable=False),
        sa.Column('from_network', sa.String(50), nullable=False),
        sa.Column('to_currency', sa.String(20), nullable=False),
        sa.Column('to_network', sa.String(50), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('estimated_receive', sa.Float(), nullable=True),
        sa.Column('rate', sa.Float(), nullable=True),
        sa.Column('deposit_address', sa.String(255), nullable=True),
        sa.Column('deposit_extra_id', sa.String(100), nullable=True),
        sa.Column('recipient_address', sa.String(255), nullable=False),
        sa.Column('recipient_extra_id', sa.String(100), nullable=True),
        sa.Column('refund_address', sa.String(255), nullable=True),
        sa.Column('refund_extra_id', sa.String(100), nullable=True),
        sa.Column('status', sa.Enum('waiting', 'confirming', 'sending', 'completed', 'failed', 'refunded', 'expired', name='swapstatus'), nullable=False),
        sa.Column('rate_type', sa.Enum('floating', 'fixed', name='ratetype'), nullable=False),
        sa.Column('is_sandbox', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_swaps_user_id', 'swaps', ['user_id'])
    op.create_index('ix_swaps_provider_swap_id', 'swaps', ['provider_swap_id'])


def downgrade() -> None:
    op.drop_table('swaps')
    op.drop_table('providers')
    op.drop_table('currencies')
