# liveshare/models/sharing_requests_table.py
# Pending/accepted/declined handshakes preceding a mutual session

from sqlalchemy import Table, Column, Text, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import JSONB

from liveshare.db.base import metadata


sharing_requests = Table(
    'sharing_requests',
    metadata,
    Column('id', Text, primary_key=True),  # uuid4 hex
    Column('sender_id', Text, nullable=False),
    Column('sender_name', Text, nullable=True),
    Column('sender_email', Text, nullable=True),
    Column('recipient_id', Text, nullable=False),
    Column('recipient_name', Text, nullable=True),
    Column('recipient_email', Text, nullable=True),
    Column('sender_location', JSONB, nullable=False),  # {lat, lng, accuracy}
    Column('sender_address', Text, nullable=True),
    Column('status', Text, nullable=False),  # pending | accepted | declined
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('resolved_at', TIMESTAMP(timezone=True), nullable=True),
    Column('session_id', Text, nullable=True),  # set on accept
    Index('ix_sharing_requests_recipient_status', 'recipient_id', 'status', 'created_at'),
    Index('ix_sharing_requests_sender_status', 'sender_id', 'status', 'created_at'),
    schema='public',
)
