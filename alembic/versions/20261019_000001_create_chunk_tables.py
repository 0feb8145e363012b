"""Create chunk store tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create chunks table
    op.create_table(
        'chunks',
        sa.Column('game_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('idx', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('length', sa.SmallInteger(), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('tx_hash', sa.String(length=128), nullable=False),
        sa.Column('height', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('game_id', 'idx')
    )
    op.create_index(
        'ix_chunks_game_tx_hash', 'chunks',
        ['game_id', 'tx_hash'], unique=False
    )
    op.create_index('ix_chunks_height', 'chunks', ['height'], unique=False)

    # Create indexer_state table
    op.create_table(
        'indexer_state',
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('last_indexed_height', sa.BigInteger(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column(
            'error_count', sa.Integer(),
            nullable=False, server_default='0'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('name')
    )


def downgrade() -> None:
    op.drop_table('indexer_state')
    op.drop_index('ix_chunks_height', table_name='chunks')
    op.drop_index('ix_chunks_game_tx_hash', table_name='chunks')
    op.drop_table('chunks')
