# =======================================================================================
# gatepass/models/tables.py - Database Tables
# =======================================================================================
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)

metadata = MetaData()

visit_records = Table(
    "visit_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("mobile_number", String(20), nullable=False),
    Column("purpose", String(500), nullable=False),
    Column("visit_at", DateTime, nullable=False),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("status", String(16), nullable=False, default="pending"),
    # OUTSIDE / INSIDE; kept in step with the last ledger row
    Column("presence", String(8), nullable=False, default="OUTSIDE"),
    # bumped on every mutation, used for conditional updates
    Column("version", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

visit_events = Table(
    "visit_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "visit_record_id",
        Integer,
        ForeignKey("visit_records.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("entry_time", DateTime, nullable=False),
    Column("exit_time", DateTime, nullable=True),
    Index("ix_visit_events_record", "visit_record_id"),
    Index("ix_visit_events_entry_time", "entry_time"),
)

one_time_codes = Table(
    "one_time_codes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False),
    Column("code", String(12), nullable=False),
    Column("issued_at", DateTime, nullable=False),
    Index("ix_one_time_codes_email_code", "email", "code"),
    Index("ix_one_time_codes_issued_at", "issued_at"),
)

credentials = Table(
    "credentials",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token", String(128), nullable=False, unique=True),
    Column(
        "visit_record_id",
        Integer,
        ForeignKey("visit_records.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("issued_at", DateTime, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Index("ix_credentials_record", "visit_record_id"),
)

admins = Table(
    "admins",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False),
)
