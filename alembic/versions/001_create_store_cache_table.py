"""Create store_cache table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

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
    """Create store_cache table."""
    op.create_table(
        'store_cache',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('shop', sa.String(255), nullable=False),
        sa.Column('data_type', sa.String(50), nullable=False),
        sa.Column('data', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('shop', 'data_type', name='uq_store_cache_shop_data_type'),
    )

    op.create_index('ix_store_cache_shop', 'store_cache', ['shop'])

    # Purges of expired entries scan by expiry
    op.create_index('ix_store_cache_expires_at', 'store_cache', ['expires_at'])


def downgrade() -> None:
    """Drop store_cache table."""
    op.drop_index('ix_store_cache_expires_at', table_name='store_cache')
    op.drop_index('ix_store_cache_shop', table_name='store_cache')
    op.drop_table('store_cache')
