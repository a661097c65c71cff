# liveshare/models/actors_table.py
# Directory of authenticated actors, upserted on every resolved credential

from sqlalchemy import Table, Column, Text, TIMESTAMP, Index

from liveshare.db.base import metadata


actors = Table(
    'actors',
    metadata,
    Column('id', Text, primary_key=True),  # id claim of the bearer token
    Column('name', Text, nullable=True),
    Column('email', Text, nullable=True),
    Column('last_seen_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_actors_email', 'email'),
    schema='public',
)
