"""initial ledger schema

Revision ID: 0001_initial_ledger_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial_ledger_schema'
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
MONEY = sa.Numeric(14, 2)

interval_enum = sa.Enum('daily', 'weekly', 'monthly', 'yearly', name='recurrenceinterval')
# Already created with the goals table
interval_enum_ref = postgresql.ENUM('daily', 'weekly', 'monthly', 'yearly', name='recurrenceinterval', create_type=False)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('email', sa.String, nullable=False),
        sa.Column('hashed_password', sa.String, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('is_superuser', sa.Boolean, nullable=False),
        sa.Column('is_verified', sa.Boolean, nullable=False),
        sa.Column('full_name', sa.String, nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'accounts',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False),
        sa.Column('account_type', sa.Enum('current', 'savings', name='accounttype'), nullable=False),
        sa.Column('balance', MONEY, nullable=False),
        sa.Column('is_default', sa.Boolean, nullable=False),
        sa.Column('version_id', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime),
        sa.UniqueConstraint('user_id', 'slug', name='uq_accounts_user_slug'),
        sa.CheckConstraint('balance >= 0', name='ck_accounts_balance_non_negative'),
    )
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'])

    op.create_table(
        'categories',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False),
        sa.Column('category_type', sa.Enum('income', 'expense', name='categorytype'), nullable=False),
        sa.Column('on_track', sa.Boolean, nullable=False),
        sa.Column('is_reserved', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime),
        sa.UniqueConstraint('user_id', 'slug', name='uq_categories_user_slug'),
    )
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'budgets',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('limit_amount', MONEY, nullable=False),
        sa.Column('remaining_limit', MONEY, nullable=False),
        sa.Column('version_id', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime),
        sa.UniqueConstraint('user_id', 'category_id', name='uq_budgets_user_category'),
        sa.CheckConstraint(
            'remaining_limit >= 0 AND remaining_limit <= limit_amount',
            name='ck_budgets_remaining_within_limit',
        ),
    )
    op.create_index('ix_budgets_user_id', 'budgets', ['user_id'])

    op.create_table(
        'goals',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', UUID, sa.ForeignKey('accounts.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('contribution_amount', MONEY, nullable=False),
        sa.Column('contribution_interval', interval_enum, nullable=False),
        sa.Column('no_of_installments', sa.Integer, nullable=False),
        sa.Column('current_installment', sa.Integer, nullable=False),
        sa.Column('balance', MONEY, nullable=False),
        sa.Column('next_contribution_date', sa.DateTime, nullable=True),
        sa.Column('status', sa.Enum('ongoing', 'completed', name='goalstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime),
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])
    op.create_index('ix_goals_status', 'goals', ['status'])
    op.create_index('ix_goals_next_contribution_date', 'goals', ['next_contribution_date'])

    op.create_table(
        'transactions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', UUID, sa.ForeignKey('accounts.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('transaction_type', sa.Enum('income', 'expense', name='transactiontype'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('transaction_date', sa.DateTime, nullable=False),
        sa.Column('status', sa.Enum('pending', 'completed', 'failed', name='transactionstatus'), nullable=False),
        sa.Column('failure_reason', sa.String(64), nullable=True),
        sa.Column('is_recurring', sa.Boolean, nullable=False),
        sa.Column('recurring_interval', interval_enum_ref, nullable=True),
        sa.Column('next_recurring_date', sa.DateTime, nullable=True),
        sa.Column('recurring_parent_id', UUID, sa.ForeignKey('transactions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('budget_id', UUID, sa.ForeignKey('budgets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('goal_id', UUID, sa.ForeignKey('goals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('last_processed', sa.DateTime),
        sa.Column('created_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_account_id', 'transactions', ['account_id'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_next_recurring_date', 'transactions', ['next_recurring_date'])
    op.create_index('ix_transactions_goal_id', 'transactions', ['goal_id'])

    op.create_table(
        'notifications',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('message', sa.String, nullable=False),
        sa.Column('type', sa.String, nullable=False),
        sa.Column('status', sa.String, nullable=False),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('transaction_id', UUID, sa.ForeignKey('transactions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('goal_id', UUID, sa.ForeignKey('goals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('transactions')
    op.drop_table('goals')
    op.drop_table('budgets')
    op.drop_table('categories')
    op.drop_table('accounts')
    op.drop_table('users')
    for name in ('transactiontype', 'transactionstatus', 'goalstatus', 'recurrenceinterval',
                 'categorytype', 'accounttype'):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
