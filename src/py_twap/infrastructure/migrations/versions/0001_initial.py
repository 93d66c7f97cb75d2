"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Arbitrary-precision integers are stored as base-10 text (see models.BigIntText)
_BIG = sa.String(length=100)


def upgrade() -> None:
    # singleton control record
    op.create_table(
        'twap_metadata',
        sa.Column('key', sa.String(length=32), primary_key=True),
        sa.Column('next_sample_id', sa.BigInteger(), nullable=False),
        sa.Column('transaction_count', sa.BigInteger(), nullable=False),
    )
    # price samples
    op.create_table(
        'price_samples',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('block_height', sa.BigInteger(), nullable=False),
        sa.Column('raw_reserve_a', _BIG, nullable=False),
        sa.Column('price_a_to_b', _BIG, nullable=False),
        sa.Column('price_b_to_c', _BIG, nullable=False),
        sa.Column('price_composite', _BIG, nullable=False),
        sa.Column('source_address', sa.String(length=64), nullable=False),
    )
    op.create_index('ix_price_samples_timestamp', 'price_samples', ['timestamp'])
    op.create_index('ix_price_samples_block_height', 'price_samples', ['block_height'])
    # accumulation chain
    op.create_table(
        'twap_aggregates',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('numerator', _BIG, nullable=False),
        sa.Column('denominator', _BIG, nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('block_height', sa.BigInteger(), nullable=False),
        sa.Column('source_address', sa.String(length=64), nullable=False),
    )
    op.create_index('ix_twap_aggregates_timestamp', 'twap_aggregates', ['timestamp'])
    # cursor
    op.create_table(
        'twap_last_pointer',
        sa.Column('key', sa.String(length=32), primary_key=True),
        sa.Column('last_sample_id', sa.String(length=32), nullable=False),
        sa.Column('last_aggregate_id', sa.String(length=32), nullable=False),
    )
    # per-timestamp transaction counts
    op.create_table(
        'transaction_count_snapshots',
        sa.Column('timestamp', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('block_height', sa.BigInteger(), nullable=True),
        sa.Column('count', sa.BigInteger(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('transaction_count_snapshots')
    op.drop_table('twap_last_pointer')
    op.drop_index('ix_twap_aggregates_timestamp', table_name='twap_aggregates')
    op.drop_table('twap_aggregates')
    op.drop_index('ix_price_samples_block_height', table_name='price_samples')
    op.drop_index('ix_price_samples_timestamp', table_name='price_samples')
    op.drop_table('price_samples')
    op.drop_table('twap_metadata')
