# liveshare/models/broadcast_sessions_table.py
# Token-addressable one-to-many tracking sessions

from sqlalchemy import Table, Column, Text, Integer, Boolean, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import JSONB

from liveshare.db.base import metadata


broadcast_sessions = Table(
    'broadcast_sessions',
    metadata,
    Column('session_token', Text, primary_key=True),  # doubles as read capability
    Column('owner_id', Text, nullable=False),
    Column('owner_name', Text, nullable=False),
    Column('owner_phone', Text, nullable=False),
    Column('owner_email', Text, nullable=False),
    Column('current_location', JSONB, nullable=False),  # {lat, lng}
    Column('current_address', Text, nullable=True),
    Column('duration_minutes', Integer, nullable=False),  # -1 = unlimited
    Column('start_time', TIMESTAMP(timezone=True), nullable=False),
    Column('end_time', TIMESTAMP(timezone=True), nullable=True),
    Column('is_active', Boolean, nullable=False),
    Column('end_reason', Text, nullable=True),  # stopped | expired
    Column('last_update_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_broadcast_sessions_owner_start', 'owner_id', 'start_time'),
    schema='public',
)
