"""Initial schema: tenants, members, pos_transactions

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create the program, pass holder and POS ledger tables."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('wallet_program_id', sa.String(100), nullable=True),
        sa.Column('webhook_secret', sa.String(100), nullable=True),
        sa.Column('tier_system_type', sa.String(20), nullable=True),
        sa.Column('tier_1_max', sa.Integer(), nullable=True),
        sa.Column('tier_2_max', sa.Integer(), nullable=True),
        sa.Column('tier_3_max', sa.Integer(), nullable=True),
        sa.Column('tier_1_name', sa.String(50), nullable=True),
        sa.Column('tier_2_name', sa.String(50), nullable=True),
        sa.Column('tier_3_name', sa.String(50), nullable=True),
        sa.Column('tier_4_name', sa.String(50), nullable=True),
        sa.Column('default_member_label', sa.String(50), nullable=True),
        sa.Column('wallet_tier_id', sa.String(100), nullable=True),
        sa.Column('wallet_tier_1_id', sa.String(100), nullable=True),
        sa.Column('wallet_tier_2_id', sa.String(100), nullable=True),
        sa.Column('wallet_tier_3_id', sa.String(100), nullable=True),
        sa.Column('wallet_tier_4_id', sa.String(100), nullable=True),
        sa.Column('spend_tier_2_min_cents', sa.Integer(), nullable=True),
        sa.Column('spend_tier_3_min_cents', sa.Integer(), nullable=True),
        sa.Column('spend_tier_4_min_cents', sa.Integer(), nullable=True),
        sa.Column('tier_1_discount_percent', sa.Numeric(5, 2), nullable=True),
        sa.Column('tier_2_discount_percent', sa.Numeric(5, 2), nullable=True),
        sa.Column('tier_3_discount_percent', sa.Numeric(5, 2), nullable=True),
        sa.Column('tier_4_discount_percent', sa.Numeric(5, 2), nullable=True),
        sa.Column('earn_rate_multiplier', sa.Integer(), nullable=True),
        sa.Column('is_suspended', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
        sa.UniqueConstraint('wallet_program_id')
    )

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(100), nullable=False),
        sa.Column('wallet_pass_id', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('enrollment_source', sa.String(30), nullable=True),
        sa.Column('points_balance', sa.Integer(), nullable=True),
        sa.Column('spend_total_cents', sa.Integer(), nullable=True),
        sa.Column('tier_level', sa.String(10), nullable=True),
        sa.Column('spend_tier_level', sa.String(10), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'external_id', name='uq_tenant_external_id')
    )
    op.create_index('ix_members_tenant_status', 'members', ['tenant_id', 'status'])

    op.create_table(
        'pos_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(30), nullable=False),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('previous_balance', sa.Integer(), nullable=True),
        sa.Column('new_balance', sa.Integer(), nullable=True),
        sa.Column('transaction_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('multiplier_used', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pos_transactions_member_id', 'pos_transactions', ['member_id'])


def downgrade():
    """Drop all tables."""
    op.drop_index('ix_pos_transactions_member_id', table_name='pos_transactions')
    op.drop_table('pos_transactions')
    op.drop_index('ix_members_tenant_status', table_name='members')
    op.drop_table('members')
    op.drop_table('tenants')
