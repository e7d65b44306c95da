"""create games history table

Revision ID: 5b7e2a91c0d4
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7e2a91c0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    # Tables may already exist when the app ran with AUTO_CREATE_TABLES enabled
    if 'games' in set(insp.get_table_names()):
        return

    op.create_table(
        'games',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_code', sa.String(length=16), nullable=False),
        sa.Column('player1_name', sa.String(length=64), nullable=False),
        sa.Column('player2_name', sa.String(length=64), nullable=False),
        sa.Column('challenge', sa.Text(), nullable=False),
        sa.Column('max_number', sa.Integer(), nullable=False),
        sa.Column('player1_number', sa.Integer(), nullable=False),
        sa.Column('player2_number', sa.Integer(), nullable=False),
        sa.Column('matched', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('games') as batch_op:
        batch_op.create_index('ix_games_room_code', ['room_code'], unique=False)
        batch_op.create_index('ix_games_created_at', ['created_at'], unique=False)


def downgrade():
    with op.batch_alter_table('games') as batch_op:
        batch_op.drop_index('ix_games_created_at')
        batch_op.drop_index('ix_games_room_code')
    op.drop_table('games')
