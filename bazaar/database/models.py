"""
bazaar.database.models — SQLAlchemy 2.0 Data Models
====================================================

The core persists *datasets*, not rows: each logical collection (users,
conversations, user-stats, …) is one JSON document stored under its key in
the ``datasets`` table and read-modify-written as a whole.

Tables:
- datasets — key → JSON document, one row per logical dataset
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all VolunteerBazaar ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DatasetKey(enum.StrEnum):
    """Logical dataset names understood by the store."""
    USERS = "users"
    OPPORTUNITIES = "opportunities"
    APPLICATIONS = "applications"
    CONVERSATIONS = "conversations"
    GAMIFICATION_LOG = "gamification-log"
    USER_STATS = "user-stats"
    NOTIFICATIONS = "notifications"


class UserRole(enum.StrEnum):
    VOLUNTEER = "volunteer"
    ORGANIZATION = "organization"
    ADMIN = "admin"


class ApplicationStatus(enum.StrEnum):
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    COMPLETED = "completed"


class Attendance(enum.StrEnum):
    PRESENT = "present"
    ABSENT = "absent"
    PENDING = "pending"


class LedgerEntryType(enum.StrEnum):
    """Kinds of gamification log entries."""
    POINTS = "points"
    BADGE = "badge"
    HOURS = "hours"


# ---------------------------------------------------------------------------
# Dataset — one JSON document per logical collection
# ---------------------------------------------------------------------------
class Dataset(Base):
    """Whole-dataset storage.

    ``value_json`` holds the entire collection; writers replace it in one
    statement.  There is no per-entity row and no version column, so two
    concurrent writers of the same key resolve last-writer-wins.
    """
    __tablename__ = "datasets"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Dataset key={self.key!r} bytes={len(self.value_json or '')}>"
