import logging
from sqlalchemy import (
    Table,
    MetaData,
    Column,
    Integer,
    String,
    Text,
    DateTime,
    UniqueConstraint,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

# Event log - append only, one row per accepted event
transfer_events = Table(
    "transfer_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("transfer_id", String(255), nullable=False, index=True),
    Column("event_id", String(255), nullable=False),
    Column("status", String(32), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("reason", Text, nullable=True),
    Column("arrival_order", Integer, nullable=False),
    UniqueConstraint("transfer_id", "event_id", name="uq_transfer_event"),
    UniqueConstraint("transfer_id", "arrival_order", name="uq_transfer_arrival"),
)

# Diagnostic only - event_ids that were submitted more than once
rejected_duplicates = Table(
    "rejected_duplicates",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("transfer_id", String(255), nullable=False, index=True),
    Column("event_id", String(255), nullable=False),
    UniqueConstraint("transfer_id", "event_id", name="uq_rejected_duplicate"),
)


def create_tables(engine):
    logger.info("Creating event log tables")
    metadata.create_all(engine)
