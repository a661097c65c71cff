# liveshare/models/mutual_sessions_table.py
# Two-party sessions; each party owns its own location/address columns

from sqlalchemy import Table, Column, Text, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import JSONB

from liveshare.db.base import metadata


mutual_sessions = Table(
    'mutual_sessions',
    metadata,
    Column('id', Text, primary_key=True),
    Column('request_id', Text, nullable=False, unique=True),
    # party A: request sender
    Column('party_a_id', Text, nullable=False),
    Column('party_a_name', Text, nullable=True),
    Column('party_a_email', Text, nullable=True),
    Column('party_a_location', JSONB, nullable=True),  # {lat, lng, accuracy}
    Column('party_a_address', Text, nullable=True),
    # party B: accepter
    Column('party_b_id', Text, nullable=False),
    Column('party_b_name', Text, nullable=True),
    Column('party_b_email', Text, nullable=True),
    Column('party_b_location', JSONB, nullable=True),
    Column('party_b_address', Text, nullable=True),
    Column('status', Text, nullable=False),  # active | ended
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('ended_at', TIMESTAMP(timezone=True), nullable=True),
    Column('ended_by', Text, nullable=True),
    Column('last_update_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_mutual_sessions_party_a_status', 'party_a_id', 'status'),
    Index('ix_mutual_sessions_party_b_status', 'party_b_id', 'status'),
    schema='public',
)
