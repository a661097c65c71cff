"""add broadcast_sessions and notifications tables

Revision ID: 8e41b6c0d2f7
Revises: 3f9c2d7a1b04
Create Date: 2026-10-02 16:47:05.118903

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8e41b6c0d2f7'
down_revision: Union[str, None] = '3f9c2d7a1b04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'broadcast_sessions',
        sa.Column('session_token', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.Text(), nullable=False),
        sa.Column('owner_name', sa.Text(), nullable=False),
        sa.Column('owner_phone', sa.Text(), nullable=False),
        sa.Column('owner_email', sa.Text(), nullable=False),
        sa.Column('current_location', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('current_address', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_time', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('end_reason', sa.Text(), nullable=True),
        sa.Column('last_update_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('session_token'),
        schema='public'
    )
    op.create_index(
        'ix_broadcast_sessions_owner_start',
        'broadcast_sessions',
        ['owner_id', 'start_time'],
        schema='public'
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('target_actor_id', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('icon', sa.Text(), nullable=True),
        sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        schema='public'
    )
    op.create_index(
        'ix_notifications_target_created',
        'notifications',
        ['target_actor_id', 'created_at'],
        schema='public'
    )


def downgrade() -> None:
    op.drop_index('ix_notifications_target_created', table_name='notifications', schema='public')
    op.drop_table('notifications', schema='public')
    op.drop_index('ix_broadcast_sessions_owner_start', table_name='broadcast_sessions', schema='public')
    op.drop_table('broadcast_sessions', schema='public')
