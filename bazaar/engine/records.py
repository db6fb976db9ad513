"""
bazaar.engine.records — Entity Dataclasses
===========================================

In-memory shapes of everything the datasets hold.  Each record converts to
and from the plain ``dict`` form stored by
:class:`~bazaar.database.store.DatasetStore`; timestamps stay ``datetime``
in both forms (the store handles the string encoding).

Records are per-request copies: load, mutate, save, discard.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from bazaar.database.models import (
    ApplicationStatus,
    Attendance,
    LedgerEntryType,
    UserRole,
)

__all__ = [
    "Conversation",
    "GamificationLogEntry",
    "LeaderboardEntry",
    "Message",
    "Opportunity",
    "UserNotification",
    "UserProfile",
    "VolunteerApplication",
    "VolunteerStats",
    "new_id",
    "utc_now",
]


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (the stored precision)."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return utc_now()


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class VolunteerStats:
    """Per-volunteer aggregates.  Points and hours only ever go up."""

    points: int = 0
    hours: float = 0.0
    badges: list[str] = field(default_factory=list)

    def copy(self) -> VolunteerStats:
        return VolunteerStats(points=self.points, hours=self.hours, badges=list(self.badges))

    def to_dict(self) -> dict:
        return {"points": self.points, "hours": self.hours, "badges": list(self.badges)}

    @classmethod
    def from_dict(cls, data: dict | None) -> VolunteerStats:
        if not data:
            return cls()
        badges: list[str] = []
        for badge in data.get("badges") or []:
            if badge not in badges:
                badges.append(badge)
        return cls(
            points=int(data.get("points", 0)),
            hours=float(data.get("hours", 0)),
            badges=badges,
        )


@dataclass(frozen=True, slots=True)
class GamificationLogEntry:
    """Immutable audit record of one award."""

    user_id: str
    type: LedgerEntryType
    value: int | float | str
    reason: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "type": self.type.value,
            "value": self.value,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> GamificationLogEntry:
        return cls(
            user_id=str(data["user_id"]),
            type=LedgerEntryType(data["type"]),
            value=data["value"],
            reason=data.get("reason", ""),
            timestamp=_as_datetime(data.get("timestamp")),
        )


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    user_id: str
    user_name: str
    points: int

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "user_name": self.user_name, "points": self.points}


# ---------------------------------------------------------------------------
# Messaging
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class Message:
    """One message.  Only ``is_read`` ever changes after creation."""

    id: str
    conversation_id: str
    sender_id: str
    text: str
    timestamp: datetime
    is_read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "text": self.text,
            "timestamp": self.timestamp,
            "is_read": self.is_read,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        return cls(
            id=str(data["id"]),
            conversation_id=str(data["conversation_id"]),
            sender_id=str(data["sender_id"]),
            text=data.get("text", ""),
            timestamp=_as_datetime(data.get("timestamp")),
            is_read=bool(data.get("is_read", False)),
        )


@dataclass(slots=True)
class Conversation:
    """Two-party thread tied to one opportunity.

    ``opportunity_title``, ``organization_name`` and ``volunteer_name`` are
    copied in at creation and never refreshed afterwards.  ``unread_count``
    is computed per viewer and never persisted.
    """

    id: str
    organization_id: str
    volunteer_id: str
    opportunity_id: str
    messages: list[Message]
    created_at: datetime
    updated_at: datetime
    last_message: Message | None = None
    opportunity_title: str | None = None
    organization_name: str | None = None
    volunteer_name: str | None = None
    unread_count: int | None = None

    @property
    def participant_key(self) -> tuple[str, str, str]:
        return (self.organization_id, self.volunteer_id, self.opportunity_id)

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.organization_id, self.volunteer_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "volunteer_id": self.volunteer_id,
            "opportunity_id": self.opportunity_id,
            "opportunity_title": self.opportunity_title,
            "organization_name": self.organization_name,
            "volunteer_name": self.volunteer_name,
            "messages": [m.to_dict() for m in self.messages],
            "last_message": self.last_message.to_dict() if self.last_message else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_view(self, *, include_messages: bool = True) -> dict:
        """Serialisable form for callers, carrying ``unread_count`` if set."""
        data = self.to_dict()
        if not include_messages:
            data.pop("messages")
        if self.unread_count is not None:
            data["unread_count"] = self.unread_count
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Conversation:
        messages = [Message.from_dict(m) for m in data.get("messages") or []]
        last = data.get("last_message")
        created_at = _as_datetime(data.get("created_at"))
        return cls(
            id=str(data["id"]),
            organization_id=str(data["organization_id"]),
            volunteer_id=str(data["volunteer_id"]),
            opportunity_id=str(data["opportunity_id"]),
            opportunity_title=data.get("opportunity_title"),
            organization_name=data.get("organization_name"),
            volunteer_name=data.get("volunteer_name"),
            messages=messages,
            last_message=Message.from_dict(last) if last else None,
            created_at=created_at,
            updated_at=_as_datetime(data.get("updated_at") or created_at),
        )


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class VolunteerApplication:
    id: str
    opportunity_id: str
    opportunity_title: str
    volunteer_id: str
    applicant_name: str
    applicant_email: str
    submitted_at: datetime
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    resume_url: str = ""
    cover_letter: str = ""
    attendance: Attendance = Attendance.PENDING
    org_rating: int | None = None
    hours_logged_by_org: float | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "opportunity_id": self.opportunity_id,
            "opportunity_title": self.opportunity_title,
            "volunteer_id": self.volunteer_id,
            "applicant_name": self.applicant_name,
            "applicant_email": self.applicant_email,
            "resume_url": self.resume_url,
            "cover_letter": self.cover_letter,
            "status": self.status.value,
            "submitted_at": self.submitted_at,
            "attendance": self.attendance.value,
            "org_rating": self.org_rating,
            "hours_logged_by_org": self.hours_logged_by_org,
        }

    @classmethod
    def from_dict(cls, data: dict) -> VolunteerApplication:
        rating = data.get("org_rating")
        hours = data.get("hours_logged_by_org")
        return cls(
            id=str(data["id"]),
            opportunity_id=str(data["opportunity_id"]),
            opportunity_title=data.get("opportunity_title", ""),
            volunteer_id=str(data["volunteer_id"]),
            applicant_name=data.get("applicant_name", ""),
            applicant_email=data.get("applicant_email", ""),
            resume_url=data.get("resume_url") or "",
            cover_letter=data.get("cover_letter") or "",
            status=ApplicationStatus(data.get("status", ApplicationStatus.SUBMITTED)),
            submitted_at=_as_datetime(data.get("submitted_at")),
            attendance=Attendance(data.get("attendance") or Attendance.PENDING),
            org_rating=int(rating) if rating is not None else None,
            hours_logged_by_org=float(hours) if hours is not None else None,
        )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class UserNotification:
    id: str
    user_id: str
    message: str
    timestamp: datetime
    link: str | None = None
    is_read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "message": self.message,
            "link": self.link,
            "is_read": self.is_read,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserNotification:
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            message=data.get("message", ""),
            link=data.get("link"),
            is_read=bool(data.get("is_read", False)),
            timestamp=_as_datetime(data.get("timestamp")),
        )


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class UserProfile:
    id: str
    name: str
    role: UserRole | None
    email: str = ""
    is_suspended: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value if self.role else None,
            "is_suspended": self.is_suspended,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or data.get("email") or str(data["id"]),
            email=data.get("email", ""),
            role=UserRole(data["role"]) if data.get("role") else None,
            is_suspended=bool(data.get("is_suspended", False)),
        )


@dataclass(slots=True)
class Opportunity:
    id: str
    title: str
    organization_id: str
    organization_name: str | None = None
    points_awarded: int = 0
    description: str = ""
    location: str = ""
    category: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "organization_id": self.organization_id,
            "organization_name": self.organization_name,
            "points_awarded": self.points_awarded,
            "description": self.description,
            "location": self.location,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Opportunity:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            organization_id=str(data.get("organization_id", "")),
            organization_name=data.get("organization_name"),
            points_awarded=int(data.get("points_awarded") or 0),
            description=data.get("description", ""),
            location=data.get("location", ""),
            category=data.get("category", ""),
        )
