"""Create payers, plans, subscriptions, relayer jobs and payment executions

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20261019_000001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(36, 18)


def upgrade() -> None:
    op.create_table(
        'payers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(64), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_payers_wallet_address', 'payers', ['wallet_address'])

    op.create_table(
        'plans',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('receiver_wallet', sa.String(64), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('period_seconds', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('period_seconds IS NULL OR period_seconds > 0', name='check_plan_period_positive'),
    )

    op.create_table(
        'plan_tokens',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('token_mint', sa.String(64), nullable=False),
        sa.Column('decimals', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.UniqueConstraint('plan_id', 'token_mint', name='uq_plan_tokens_plan_mint'),
        sa.CheckConstraint('price > 0', name='check_plan_token_price_positive'),
    )
    op.create_index('ix_plan_tokens_plan_id', 'plan_tokens', ['plan_id'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('payer_id', sa.String(36), sa.ForeignKey('payers.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('token_mint', sa.String(64), nullable=False),
        sa.Column('token_decimals', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('next_due_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delegate_authority', sa.String(64), nullable=False),
        sa.Column('delegate_approval_tx', sa.String(128), nullable=False),
        sa.Column('delegate_approved_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_approved_amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_subscriptions_plan_id', 'subscriptions', ['plan_id'])
    op.create_index('ix_subscriptions_payer_id', 'subscriptions', ['payer_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_next_due_at', 'subscriptions', ['next_due_at'])

    op.create_table(
        'relayer_jobs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('subscription_id', sa.String(36), sa.ForeignKey('subscriptions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_retry_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('executed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claim_token', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_relayer_jobs_subscription_id', 'relayer_jobs', ['subscription_id'])
    op.create_index('ix_relayer_jobs_status_next_retry_at', 'relayer_jobs', ['status', 'next_retry_at'])

    op.create_table(
        'payment_executions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('subscription_id', sa.String(36), sa.ForeignKey('subscriptions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('relayer_job_id', sa.String(36), sa.ForeignKey('relayer_jobs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('attempt', sa.Integer(), nullable=True),
        sa.Column('tx_signature', sa.String(128), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('token_mint', sa.String(64), nullable=False),
        sa.Column('executed_by', sa.String(64), nullable=True),
        sa.Column('executed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.UniqueConstraint('relayer_job_id', 'attempt', name='uq_payment_executions_job_attempt'),
    )
    op.create_index('ix_payment_executions_plan_id', 'payment_executions', ['plan_id'])
    op.create_index('ix_payment_executions_subscription_id', 'payment_executions', ['subscription_id'])
    op.create_index('ix_payment_executions_relayer_job_id', 'payment_executions', ['relayer_job_id'])
    # One SUCCESS row per on-chain transfer; FAILED rows share the sentinel
    op.create_index(
        'uq_payment_executions_success_signature',
        'payment_executions',
        ['tx_signature'],
        unique=True,
        postgresql_where=sa.text("status = 'SUCCESS'"),
    )


def downgrade() -> None:
    op.drop_table('payment_executions')
    op.drop_table('relayer_jobs')
    op.drop_table('subscriptions')
    op.drop_table('plan_tokens')
    op.drop_table('plans')
    op.drop_table('payers')
