"""Initial schema - chemicals table

Revision ID: 0001
Revises:
Create Date: 2025-10-27

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'chemicals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('record_id', sa.String(length=32), nullable=False),
        sa.Column('chem_name', sa.String(length=100), nullable=False),
        sa.Column('formula', sa.String(length=50), nullable=False),
        sa.Column('boiling_point', sa.Float(), nullable=False),
        sa.Column('freezing_point', sa.Float(), nullable=False),
        sa.Column('hazard_level', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chemicals_record_id', 'chemicals', ['record_id'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_chemicals_record_id', table_name='chemicals')
    op.drop_table('chemicals')
