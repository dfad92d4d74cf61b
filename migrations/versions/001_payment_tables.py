"""Create payment order and user subscription tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create payment tables"""

    # 1. Create payment_orders table
    op.create_table('payment_orders',
        sa.Column('order_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('plan_id', sa.String(50), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', sa.String(20), nullable=False, server_default='created'),
        sa.Column('receipt', sa.String(64), nullable=True),
        sa.Column('payment_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('order_id'),
        sa.CheckConstraint("status IN ('created', 'paid')", name='ck_payment_orders_status'),
        sa.CheckConstraint('amount >= 0', name='ck_payment_orders_amount'),
    )

    op.create_index('ix_payment_orders_user_id', 'payment_orders', ['user_id'])
    op.create_index('ix_payment_orders_status', 'payment_orders', ['status'])

    # 2. Create user_subscriptions table
    op.create_table('user_subscriptions',
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('plan', sa.String(50), nullable=False, server_default='free'),
        sa.Column('is_pro', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('daily_credits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reset_date', sa.Date(), nullable=True),
        sa.Column('subscription_id', sa.String(64), nullable=True),
        sa.Column('plan_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('plan_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('user_id'),
        sa.CheckConstraint('daily_credits >= 0', name='ck_user_subscriptions_credits'),
    )


def downgrade() -> None:
    """Drop payment tables"""
    op.drop_table('user_subscriptions')
    op.drop_index('ix_payment_orders_status', table_name='payment_orders')
    op.drop_index('ix_payment_orders_user_id', table_name='payment_orders')
    op.drop_table('payment_orders')
