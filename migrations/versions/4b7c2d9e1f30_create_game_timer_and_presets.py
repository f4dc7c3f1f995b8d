"""create user, game, game_timer and timer_preset

Revision ID: 4b7c2d9e1f30
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4b7c2d9e1f30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='player'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
            sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )

    if 'game_timer' not in existing_tables:
        op.create_table(
            'game_timer',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='idle'),
            sa.Column('started_at', sa.DateTime(), nullable=True),
            sa.Column('paused_at', sa.DateTime(), nullable=True),
            sa.Column('total_paused_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('schedule', sa.Text(), nullable=False),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_game_timer_game_id', 'game_timer', ['game_id'], unique=True)

    if 'timer_preset' not in existing_tables:
        op.create_table(
            'timer_preset',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('levels', sa.Text(), nullable=False),
        )
        op.create_index('ix_timer_preset_position', 'timer_preset', ['position'])


def downgrade():
    op.drop_index('ix_timer_preset_position', table_name='timer_preset')
    op.drop_table('timer_preset')
    op.drop_index('ix_game_timer_game_id', table_name='game_timer')
    op.drop_table('game_timer')
    op.drop_table('game')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
