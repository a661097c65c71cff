# liveshare/models/notifications_table.py
# Notification records written by the background worker

from sqlalchemy import Table, Column, Text, Boolean, BigInteger, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import JSONB

from liveshare.db.base import metadata


notifications = Table(
    'notifications',
    metadata,
    Column('id', BigInteger, primary_key=True, autoincrement=True),
    Column('target_actor_id', Text, nullable=False),
    Column('title', Text, nullable=False),
    Column('message', Text, nullable=False),
    Column('category', Text, nullable=False),
    Column('icon', Text, nullable=True),
    Column('data', JSONB, nullable=True),
    Column('read', Boolean, nullable=False, default=False),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_notifications_target_created', 'target_actor_id', 'created_at'),
    schema='public',
)
