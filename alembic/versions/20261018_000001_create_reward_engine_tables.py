"""create reward engine tables

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create positions, ledger, treasury, claim event and sync state tables."""
    op.create_table(
        'lp_positions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_address', sa.String(42), nullable=False),
        sa.Column('nft_id', sa.BigInteger(), nullable=False),
        sa.Column('pool_address', sa.String(42), nullable=False),
        sa.Column('value_usd', sa.DECIMAL(20, 8), nullable=False, server_default='0'),
        sa.Column('liquidity', sa.DECIMAL(78, 0), nullable=False, server_default='0'),
        sa.Column('tick_lower', sa.Integer(), nullable=False),
        sa.Column('tick_upper', sa.Integer(), nullable=False),
        sa.Column('is_full_range', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_in_range', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('reward_eligible', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('nft_id'),
    )
    op.create_index('ix_lp_positions_user_id', 'lp_positions', ['user_id'])
    op.create_index('ix_lp_positions_user_address', 'lp_positions', ['user_address'])
    op.create_index('idx_lp_positions_eligible', 'lp_positions', ['is_active', 'reward_eligible'])

    op.create_table(
        'rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('position_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_address', sa.String(42), nullable=False),
        sa.Column('nft_id', sa.BigInteger(), nullable=False),
        sa.Column('daily_reward_amount', sa.DECIMAL(30, 18), nullable=False, server_default='0'),
        sa.Column('accumulated_amount', sa.DECIMAL(30, 18), nullable=False, server_default='0'),
        sa.Column('position_value_usd', sa.DECIMAL(20, 8), nullable=False, server_default='0'),
        sa.Column('in_range_ratio', sa.DECIMAL(20, 18), nullable=False, server_default='1'),
        sa.Column('effective_apr', sa.DECIMAL(30, 18), nullable=False, server_default='0'),
        sa.Column('data_source', sa.String(16), nullable=False, server_default='live'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_reward_calculation', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_rewards_position_id', 'rewards', ['position_id'], unique=True)
    op.create_index('ix_rewards_user_id', 'rewards', ['user_id'])
    op.create_index('ix_rewards_user_address', 'rewards', ['user_address'])
    op.create_index('ix_rewards_last_reward_calculation', 'rewards', ['last_reward_calculation'])
    op.create_index('idx_rewards_user_active', 'rewards', ['user_id', 'is_active'])

    op.create_table(
        'daily_rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reward_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('position_id', sa.Integer(), nullable=False),
        sa.Column('reward_date', sa.Date(), nullable=False),
        sa.Column('position_value_usd', sa.DECIMAL(20, 8), nullable=False),
        sa.Column('liquidity_weight', sa.DECIMAL(20, 18), nullable=False),
        sa.Column('time_coefficient', sa.DECIMAL(20, 18), nullable=False),
        sa.Column('in_range_multiplier', sa.DECIMAL(20, 18), nullable=False),
        sa.Column('effective_apr', sa.DECIMAL(30, 18), nullable=False),
        sa.Column('daily_reward_amount', sa.DECIMAL(30, 18), nullable=False),
        sa.Column('days_active', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('position_id', 'reward_date', name='uq_daily_rewards_position_date'),
    )
    op.create_index('ix_daily_rewards_reward_id', 'daily_rewards', ['reward_id'])
    op.create_index('ix_daily_rewards_user_id', 'daily_rewards', ['user_id'])
    op.create_index('ix_daily_rewards_reward_date', 'daily_rewards', ['reward_date'])

    op.create_table(
        'treasury_config',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('total_allocation', sa.DECIMAL(30, 18), nullable=False),
        sa.Column('program_duration_days', sa.Integer(), nullable=False),
        sa.Column('program_start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('program_end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_treasury_config_is_active', 'treasury_config', ['is_active'])

    op.create_table(
        'claim_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_address', sa.String(42), nullable=False),
        sa.Column('amount_wei', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('nonce', sa.BigInteger(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tx_hash', 'log_index', name='uq_claim_events_tx_log'),
    )
    op.create_index('ix_claim_events_block_number', 'claim_events', ['block_number'])
    op.create_index('idx_claim_events_user_time', 'claim_events', ['user_address', 'claimed_at'])

    op.create_table(
        'blockchain_sync_state',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sync_key', sa.String(32), nullable=False),
        sa.Column('first_synced_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_synced_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('events_indexed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blockchain_sync_state_sync_key', 'blockchain_sync_state', ['sync_key'], unique=True)


def downgrade() -> None:
    """Drop reward engine tables."""
    op.drop_table('blockchain_sync_state')
    op.drop_table('claim_events')
    op.drop_table('treasury_config')
    op.drop_table('daily_rewards')
    op.drop_table('rewards')
    op.drop_table('lp_positions')
