# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Table layout for the event store.

The tables mirror a tree of nested scopes:

    /2019-03-27/
    /2019-03-27/products: [list-of-products]
    /2019-03-27/events/
    /2019-03-27/events/<session-id>/
    /2019-03-27/events/<session-id>/<seq>: json(snapshot)
"""
from sqlalchemy import (
    Column,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

days = Table(
    "days",
    metadata,
    Column("date", String(10), primary_key=True),
    Column("products", Text),
)

sessions = Table(
    "sessions",
    metadata,
    Column("date", String(10), ForeignKey("days.date"), primary_key=True),
    Column("session_id", String, primary_key=True),
)

snapshots = Table(
    "snapshots",
    metadata,
    Column("date", String(10), primary_key=True),
    Column("session_id", String, primary_key=True),
    Column("seq", Integer, primary_key=True, autoincrement=False),
    Column("payload", Text, nullable=False),
    ForeignKeyConstraint(["date", "session_id"], ["sessions.date", "sessions.session_id"]),
)
