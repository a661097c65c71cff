"""init actors, sharing_requests and mutual_sessions tables

Revision ID: 3f9c2d7a1b04
Revises:
Create Date: 2026-09-28 10:12:41.302117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2d7a1b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'actors',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('last_seen_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        schema='public'
    )
    op.create_index('ix_actors_email', 'actors', ['email'], schema='public')

    op.create_table(
        'sharing_requests',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('sender_id', sa.Text(), nullable=False),
        sa.Column('sender_name', sa.Text(), nullable=True),
        sa.Column('sender_email', sa.Text(), nullable=True),
        sa.Column('recipient_id', sa.Text(), nullable=False),
        sa.Column('recipient_name', sa.Text(), nullable=True),
        sa.Column('recipient_email', sa.Text(), nullable=True),
        sa.Column('sender_location', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('sender_address', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('resolved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('session_id', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        schema='public'
    )
    # incoming / outgoing pending views
    op.create_index(
        'ix_sharing_requests_recipient_status',
        'sharing_requests',
        ['recipient_id', 'status', 'created_at'],
        schema='public'
    )
    op.create_index(
        'ix_sharing_requests_sender_status',
        'sharing_requests',
        ['sender_id', 'status', 'created_at'],
        schema='public'
    )

    op.create_table(
        'mutual_sessions',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('request_id', sa.Text(), nullable=False),
        sa.Column('party_a_id', sa.Text(), nullable=False),
        sa.Column('party_a_name', sa.Text(), nullable=True),
        sa.Column('party_a_email', sa.Text(), nullable=True),
        sa.Column('party_a_location', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('party_a_address', sa.Text(), nullable=True),
        sa.Column('party_b_id', sa.Text(), nullable=False),
        sa.Column('party_b_name', sa.Text(), nullable=True),
        sa.Column('party_b_email', sa.Text(), nullable=True),
        sa.Column('party_b_location', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('party_b_address', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('ended_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('ended_by', sa.Text(), nullable=True),
        sa.Column('last_update_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id'),
        schema='public'
    )
    op.create_index(
        'ix_mutual_sessions_party_a_status', 'mutual_sessions', ['party_a_id', 'status'], schema='public'
    )
    op.create_index(
        'ix_mutual_sessions_party_b_status', 'mutual_sessions', ['party_b_id', 'status'], schema='public'
    )


def downgrade() -> None:
    op.drop_index('ix_mutual_sessions_party_b_status', table_name='mutual_sessions', schema='public')
    op.drop_index('ix_mutual_sessions_party_a_status', table_name='mutual_sessions', schema='public')
    op.drop_table('mutual_sessions', schema='public')
    op.drop_index('ix_sharing_requests_sender_status', table_name='sharing_requests', schema='public')
    op.drop_index('ix_sharing_requests_recipient_status', table_name='sharing_requests', schema='public')
    op.drop_table('sharing_requests', schema='public')
    op.drop_index('ix_actors_email', table_name='actors', schema='public')
    op.drop_table('actors', schema='public')
