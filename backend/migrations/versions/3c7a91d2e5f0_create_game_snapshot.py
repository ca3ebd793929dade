"""create game_snapshot

Revision ID: 3c7a91d2e5f0
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a91d2e5f0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Tables created by `flask db-reset` already match this revision
    if 'game_snapshot' in set(insp.get_table_names()):
        return

    op.create_table(
        'game_snapshot',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('state', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_snapshot_code', 'game_snapshot', ['code'], unique=True)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'game_snapshot' not in set(insp.get_table_names()):
        return
    op.drop_index('ix_game_snapshot_code', table_name='game_snapshot')
    op.drop_table('game_snapshot')
