"""Initial schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - redirects table: slug -> first/next URL plus the global first-use flag
    - visits table: per-visitor ledger, unique per (redirect_id, visitor_ip)
    """
    op.create_table(
        'redirects',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('slug', sa.String(length=50), nullable=False),
        sa.Column('first_url', sa.Text(), nullable=False),
        sa.Column('next_url', sa.Text(), nullable=False),
        sa.Column('first_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_redirects_slug', 'redirects', ['slug'], unique=True)
    op.create_index('ix_redirects_created_at', 'redirects', ['created_at'])
    
    op.create_table(
        'visits',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('redirect_id', sa.String(length=32), nullable=False),
        sa.Column('visitor_ip', sa.String(length=255), nullable=False),
        sa.Column('visited_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['redirect_id'],
            ['redirects.id'],
            name='fk_visits_redirect_id',
            ondelete='CASCADE'
        ),
        sa.UniqueConstraint('redirect_id', 'visitor_ip', name='uq_visits_redirect_visitor'),
    )
    op.create_index('ix_visits_redirect_id', 'visits', ['redirect_id'])


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_visits_redirect_id', table_name='visits')
    op.drop_table('visits')
    op.drop_index('ix_redirects_created_at', table_name='redirects')
    op.drop_index('ix_redirects_slug', table_name='redirects')
    op.drop_table('redirects')
