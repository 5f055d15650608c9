"""Create player_stats and global_stats tables

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def stat_value_columns():
    return [
        sa.Column('kind', sa.String(), nullable=False),
        sa.Column('family', sa.String(), nullable=False),
        sa.Column('int_value', sa.BigInteger(), nullable=True),
        sa.Column('float_value', sa.Float(), nullable=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('player_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_uuid', sa.String(), nullable=False),
        sa.Column('namespace', sa.String(), nullable=False),
        sa.Column('stat_id', sa.String(), nullable=False),
        *stat_value_columns(),
        sa.ForeignKeyConstraint(['player_uuid'], ['players.uuid'], name=op.f('fk_player_stats_player_uuid_players')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_player_stats')),
        sa.UniqueConstraint('player_uuid', 'namespace', 'stat_id', name='uq_player_stats_key')
    )
    op.create_index(op.f('ix_player_stats_id'), 'player_stats', ['id'], unique=False)
    op.create_index('ix_player_stats_player_namespace', 'player_stats', ['player_uuid', 'namespace'], unique=False)

    op.create_table('global_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('namespace', sa.String(), nullable=False),
        sa.Column('stat_id', sa.String(), nullable=False),
        *stat_value_columns(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_global_stats')),
        sa.UniqueConstraint('namespace', 'stat_id', name='uq_global_stats_key')
    )
    op.create_index(op.f('ix_global_stats_id'), 'global_stats', ['id'], unique=False)
    op.create_index(op.f('ix_global_stats_namespace'), 'global_stats', ['namespace'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_global_stats_namespace'), table_name='global_stats')
    op.drop_index(op.f('ix_global_stats_id'), table_name='global_stats')
    op.drop_table('global_stats')
    op.drop_index('ix_player_stats_player_namespace', table_name='player_stats')
    op.drop_index(op.f('ix_player_stats_id'), table_name='player_stats')
    op.drop_table('player_stats')
