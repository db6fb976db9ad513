"""
bazaar.services.actions — Caller-Facing Operations
===================================================

The surface the web layer calls.  Every function returns an
:class:`ActionResult` instead of raising: domain errors become
``success=False`` with a user-presentable message, persistence failures
are logged with traceback and reported with a generic message.

Anything that is not a :class:`~bazaar.errors.BazaarError` is a bug and
propagates.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bazaar.config import DEFAULT_CONFIG, BazaarConfig
from bazaar.database.models import Attendance, UserRole
from bazaar.database.store import DatasetStore
from bazaar.errors import BazaarError, PersistenceError
from bazaar.services import (
    application_service,
    gamification_service,
    messaging_service,
    notification_service,
    workflow_service,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActionResult:
    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """``{success, message, **data}`` — the shape handed to the UI."""
        return {"success": self.success, "message": self.message, **self.data}


def _action(failure_message: str) -> Callable:
    """Convert domain errors raised by the wrapped call into a failed result."""

    def decorator(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> ActionResult:
            try:
                return func(*args, **kwargs)
            except PersistenceError:
                logger.exception("%s: persistence failure", func.__name__)
                return ActionResult(False, failure_message)
            except BazaarError as exc:
                logger.warning("%s rejected: %s", func.__name__, exc)
                return ActionResult(False, str(exc) or failure_message)

        return wrapper

    return decorator


def _workflow_message(done: str, outcome: workflow_service.WorkflowOutcome) -> str:
    if outcome.complete:
        return done
    return f"{done} Some follow-up steps failed: {', '.join(outcome.failed_steps)}."


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------
@_action("Failed to load stats.")
def get_user_stats(store: DatasetStore, user_id: str) -> ActionResult:
    stats = gamification_service.get_user_stats(store, user_id)
    return ActionResult(True, "", {"stats": stats.to_dict()})


@_action("Failed to award points.")
def add_points(store: DatasetStore, user_id: str, amount: int, reason: str) -> ActionResult:
    stats = gamification_service.add_points(store, user_id, amount, reason)
    message = f"Awarded {amount} points." if amount > 0 else "No points added."
    return ActionResult(True, message, {"stats": stats.to_dict()})


@_action("Failed to award badge.")
def award_badge(store: DatasetStore, user_id: str, badge_name: str, reason: str) -> ActionResult:
    stats = gamification_service.award_badge(store, user_id, badge_name, reason)
    return ActionResult(True, f"Badge {badge_name!r} awarded.", {"stats": stats.to_dict()})


@_action("Failed to log hours.")
def log_hours(
    store: DatasetStore,
    user_id: str,
    hours: float,
    reason: str,
    *,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> ActionResult:
    stats = gamification_service.log_hours(
        store, user_id, hours, reason, milestones=config.hour_milestones,
    )
    return ActionResult(True, f"Logged {hours:g} hours.", {"stats": stats.to_dict()})


@_action("Failed to load leaderboard.")
def get_leaderboard(store: DatasetStore, limit: int | None = None, *, config: BazaarConfig = DEFAULT_CONFIG) -> ActionResult:
    entries = gamification_service.get_leaderboard(
        store, config.leaderboard_limit if limit is None else limit,
    )
    return ActionResult(True, "", {"leaderboard": [e.to_dict() for e in entries]})


@_action("Failed to load activity log.")
def get_log_for_user(store: DatasetStore, user_id: str) -> ActionResult:
    entries = gamification_service.get_log_for_user(store, user_id)
    return ActionResult(True, "", {"log": [e.to_dict() for e in entries]})


# ---------------------------------------------------------------------------
# Messaging
# ---------------------------------------------------------------------------
@_action("Failed to start conversation.")
def create_conversation(store: DatasetStore, **fields: Any) -> ActionResult:
    conversation = messaging_service.create_conversation(store, **fields)
    return ActionResult(
        True, "Conversation ready.",
        {"conversation_id": conversation.id, "conversation": conversation.to_view()},
    )


@_action("Failed to load conversations.")
def get_conversations_for_user(store: DatasetStore, user_id: str, role: UserRole | str) -> ActionResult:
    conversations = messaging_service.get_conversations_for_user(store, user_id, role)
    return ActionResult(
        True, "", {"conversations": [c.to_view(include_messages=False) for c in conversations]},
    )


@_action("Failed to load unread count.")
def get_unread_total(store: DatasetStore, user_id: str, role: UserRole | str) -> ActionResult:
    return ActionResult(True, "", {"unread": messaging_service.get_unread_total(store, user_id, role)})


@_action("Failed to load conversation.")
def get_conversation_details(
    store: DatasetStore, conversation_id: str, user_id: str, role: UserRole | str,
) -> ActionResult:
    details = messaging_service.get_conversation_details(store, conversation_id, user_id, role)
    return ActionResult(True, "", details.to_dict())


@_action("Failed to send message.")
def send_message(store: DatasetStore, conversation_id: str, sender_id: str, text: str) -> ActionResult:
    message = messaging_service.send_message(store, conversation_id, sender_id, text)
    return ActionResult(True, "Message sent.", {"sent_message": message.to_dict()})


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------
@_action("Failed to submit application.")
def submit_application(
    store: DatasetStore,
    application_data: dict,
    volunteer_id: str,
    applicant_name: str,
    *,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> ActionResult:
    outcome = workflow_service.submit_application(
        store, application_data, volunteer_id, applicant_name, config=config,
    )
    return ActionResult(
        True,
        _workflow_message("Application submitted successfully!", outcome),
        {"application": outcome.application.to_dict(), "failed_steps": outcome.failed_steps},
    )


@_action("Failed to accept application.")
def accept_application(
    store: DatasetStore,
    application_id: str,
    volunteer_id: str,
    organization_id: str,
    organization_name: str,
    *,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> ActionResult:
    outcome = workflow_service.accept_application(
        store, application_id, volunteer_id, organization_id, organization_name, config=config,
    )
    return ActionResult(
        True,
        _workflow_message("Application accepted, conversation started, and notification sent.", outcome),
        {
            "conversation_id": outcome.conversation_id,
            "updated_app": outcome.application.to_dict(),
            "failed_steps": outcome.failed_steps,
        },
    )


@_action("Failed to reject application.")
def reject_application(store: DatasetStore, application_id: str, *, organization_id: str | None = None) -> ActionResult:
    outcome = workflow_service.reject_application(store, application_id, organization_id=organization_id)
    return ActionResult(
        True,
        _workflow_message("Application rejected and notification sent.", outcome),
        {"updated_app": outcome.application.to_dict(), "failed_steps": outcome.failed_steps},
    )


@_action("Failed to record volunteer performance.")
def record_performance(
    store: DatasetStore,
    application_id: str,
    *,
    attendance: Attendance | str,
    org_rating: int | None = None,
    hours_logged_by_org: float | None = None,
    organization_id: str | None = None,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> ActionResult:
    outcome = workflow_service.record_performance(
        store,
        application_id,
        attendance=attendance,
        org_rating=org_rating,
        hours_logged_by_org=hours_logged_by_org,
        organization_id=organization_id,
        config=config,
    )
    return ActionResult(
        True,
        _workflow_message("Volunteer performance recorded successfully.", outcome),
        {"updated_app": outcome.application.to_dict(), "failed_steps": outcome.failed_steps},
    )


@_action("Failed to load applications.")
def list_applications_for_volunteer(store: DatasetStore, volunteer_id: str) -> ActionResult:
    apps = application_service.list_for_volunteer(store, volunteer_id)
    return ActionResult(True, "", {"applications": [a.to_dict() for a in apps]})


@_action("Failed to load applications.")
def list_applications_for_organization(store: DatasetStore, organization_id: str) -> ActionResult:
    apps = application_service.list_for_organization(store, organization_id)
    return ActionResult(True, "", {"applications": [a.to_dict() for a in apps]})


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@_action("Failed to create notification.")
def create_notification(store: DatasetStore, user_id: str, message: str, link: str | None = None) -> ActionResult:
    notification = notification_service.create(store, user_id, message, link)
    return ActionResult(True, "Notification created.", {"notification": notification.to_dict()})


@_action("Failed to load notifications.")
def list_notifications(store: DatasetStore, user_id: str, *, include_read: bool = False) -> ActionResult:
    notifications = notification_service.list_for_user(store, user_id, include_read=include_read)
    return ActionResult(True, "", {"notifications": [n.to_dict() for n in notifications]})


@_action("Failed to update notification.")
def mark_notification_read(store: DatasetStore, notification_id: str, user_id: str) -> ActionResult:
    notification = notification_service.mark_read(store, notification_id, user_id)
    if notification is None:
        return ActionResult(False, "Notification not found.")
    return ActionResult(True, "Notification marked as read.", {"notification": notification.to_dict()})


@_action("Failed to update notifications.")
def mark_all_notifications_read(store: DatasetStore, user_id: str) -> ActionResult:
    count = notification_service.mark_all_read(store, user_id)
    return ActionResult(True, f"Marked {count} notification(s) as read.", {"count": count})
