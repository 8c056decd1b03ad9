"""create_payment_and_balance_tables

Revision ID: 3f2c9a1d7b40
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2c9a1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - users, payments and the balance ledger."""

    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('balance', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('balance >= 0', name=op.f('ck_users_balance_non_negative')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name=op.f('uq_users_email')),
        sa.UniqueConstraint('phone_number', name=op.f('uq_users_phone_number')),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'PAID', 'CANCELLED', name='payment_status_enum'),
            nullable=False,
        ),
        sa.Column('payment_method', sa.String(length=64), nullable=True),
        sa.Column('external_invoice_id', sa.String(length=128), nullable=True),
        sa.Column('external_invoice_url', sa.Text(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'settled_via',
            sa.Enum('webhook', 'confirm', name='payment_settlement_source_enum'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name=op.f('ck_payments_amount_positive')),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name=op.f('fk_payments_user_id_users')
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_payments')),
        sa.UniqueConstraint(
            'external_invoice_id', name=op.f('uq_payments_external_invoice_id')
        ),
    )
    op.create_index(op.f('ix_payments_user_id'), 'payments', ['user_id'], unique=False)
    op.create_index(
        'ix_payments_user_status_amount',
        'payments',
        ['user_id', 'status', 'amount'],
        unique=False,
    )

    op.create_table(
        'balance_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column(
            'transaction_type',
            sa.Enum('DEPOSIT', 'PURCHASE', name='balance_transaction_type_enum'),
            nullable=False,
        ),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('idempotency_key', sa.String(), nullable=True),
        sa.Column('reference_type', sa.String(), nullable=True),
        sa.Column('reference_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name=op.f('fk_balance_transactions_user_id_users')
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_balance_transactions')),
        sa.UniqueConstraint(
            'idempotency_key', name=op.f('uq_balance_transactions_idempotency_key')
        ),
    )
    op.create_index(
        op.f('ix_balance_transactions_user_id'),
        'balance_transactions',
        ['user_id'],
        unique=False,
    )
    op.create_index(
        'ix_balance_transactions_user_created',
        'balance_transactions',
        ['user_id', 'created_at'],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema - drop the ledger, payments and users."""
    op.drop_index('ix_balance_transactions_user_created', table_name='balance_transactions')
    op.drop_index(op.f('ix_balance_transactions_user_id'), table_name='balance_transactions')
    op.drop_table('balance_transactions')
    op.drop_index('ix_payments_user_status_amount', table_name='payments')
    op.drop_index(op.f('ix_payments_user_id'), table_name='payments')
    op.drop_table('payments')
    op.drop_table('users')

    sa.Enum(name='balance_transaction_type_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='payment_settlement_source_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='payment_status_enum').drop(op.get_bind(), checkfirst=True)
