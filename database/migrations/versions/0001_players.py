"""Create players table

Revision ID: 0001
Revises:
Create Date: 2026-10-18

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
    op.create_table('players',
        sa.Column('uuid', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('uuid', name=op.f('pk_players'))
    )
    op.create_index(op.f('ix_players_username'), 'players', ['username'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_players_username'), table_name='players')
    op.drop_table('players')
