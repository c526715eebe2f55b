"""initial lobby schema: user, room, room_player, message

Revision ID: 5a1c0e7d2b91
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a1c0e7d2b91'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    # Databases created with `flask db-reset` already have every table
    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=20), nullable=False),
            sa.Column('password_hash', sa.String(length=128), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'room' not in existing_tables:
        op.create_table(
            'room',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=6), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=True),
            sa.Column('owner_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('max_players', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('settings_json', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_room_code', 'room', ['code'], unique=True)
        op.create_index('ix_room_status', 'room', ['status'])

    if 'room_player' not in existing_tables:
        op.create_table(
            'room_player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('user_name', sa.String(length=20), nullable=True),
            sa.Column('seat', sa.Integer(), nullable=True),
            sa.Column('joined_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('room_id', 'user_id', name='uq_room_player_room_user'),
        )
        op.create_index('ix_room_player_room_id', 'room_player', ['room_id'])

    if 'message' not in existing_tables:
        op.create_table(
            'message',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('user_name', sa.String(length=20), nullable=False),
            sa.Column('text', sa.String(length=500), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_message_room_id', 'message', ['room_id'])


def downgrade():
    op.drop_index('ix_message_room_id', table_name='message')
    op.drop_table('message')
    op.drop_index('ix_room_player_room_id', table_name='room_player')
    op.drop_table('room_player')
    op.drop_index('ix_room_status', table_name='room')
    op.drop_index('ix_room_code', table_name='room')
    op.drop_table('room')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
