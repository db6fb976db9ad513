"""
bazaar.services.workflow_service — Application / Acceptance Workflow
=====================================================================

Sequences the side effects around an application's status changes:

- **submit**  → persist application · award application points · notify org
- **accept**  → status ``accepted`` · open conversation · acceptance points ·
  notify volunteer
- **reject**  → status ``rejected`` · notify volunteer
- **performance** → attendance/rating/hours · when present: completion
  points · rating bonus · log hours (may award milestone badges) · notify

The first step of each flow is the *primary* mutation: its errors
propagate.  Every later step is *secondary*: a failure is logged with
traceback and recorded in ``failed_steps`` but never rolls back what has
already been written (at-least-once, no compensation).  Steps run strictly
in order, each completing before the next begins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bazaar.config import DEFAULT_CONFIG, BazaarConfig
from bazaar.constants import (
    ORGANIZATION_APPLICATIONS_LINK,
    VOLUNTEER_DASHBOARD_LINK,
    conversation_link,
)
from bazaar.database.models import ApplicationStatus, Attendance
from bazaar.database.store import DatasetStore
from bazaar.engine.records import VolunteerApplication
from bazaar.errors import AccessDeniedError, ValidationError
from bazaar.services import (
    application_service,
    directory_service,
    gamification_service,
    messaging_service,
    notification_service,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkflowOutcome:
    """What a workflow step produced.

    ``failed_steps`` names the secondary effects that raised; the primary
    mutation in ``application`` has been persisted regardless.
    """

    application: VolunteerApplication
    conversation_id: str | None = None
    failed_steps: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_steps


def _secondary(outcome: WorkflowOutcome, step: str, func: Callable[..., Any], *args, **kwargs) -> Any:
    """Run one secondary effect; log and record a failure instead of raising."""
    try:
        return func(*args, **kwargs)
    except Exception:
        logger.exception(
            "Workflow step %r failed for application %s", step, outcome.application.id,
        )
        outcome.failed_steps.append(step)
        return None


def _check_owner(store: DatasetStore, application: VolunteerApplication, organization_id: str | None) -> None:
    """Reject an organization acting on another organization's opportunity.

    Skipped when *organization_id* is ``None`` or the opportunity is gone.
    """
    if organization_id is None:
        return
    opportunity = directory_service.get_opportunity(store, application.opportunity_id)
    if opportunity is not None and opportunity.organization_id != organization_id:
        raise AccessDeniedError("Opportunity does not belong to this organization.")


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------
def submit_application(
    store: DatasetStore,
    application_data: dict,
    volunteer_id: str,
    applicant_name: str,
    *,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> WorkflowOutcome:
    """Persist a new application and award the points for applying.

    *application_data* carries ``opportunity_id``, ``opportunity_title``,
    ``applicant_email`` and optionally ``resume_url`` / ``cover_letter``.
    *applicant_name* always wins over any name inside *application_data*.

    Raises
    ------
    DuplicateApplicationError
        The volunteer already applied to this opportunity.
    """
    application = application_service.submit(
        store,
        opportunity_id=str(application_data["opportunity_id"]),
        opportunity_title=application_data.get("opportunity_title", ""),
        volunteer_id=volunteer_id,
        applicant_name=applicant_name,
        applicant_email=application_data.get("applicant_email", ""),
        resume_url=application_data.get("resume_url") or "",
        cover_letter=application_data.get("cover_letter") or "",
    )
    outcome = WorkflowOutcome(application=application)

    _secondary(
        outcome, "application_points",
        gamification_service.add_points,
        store, volunteer_id, config.application_points,
        f"Applied for opportunity: {application.opportunity_title}",
    )

    opportunity = _secondary(
        outcome, "lookup_opportunity",
        directory_service.get_opportunity, store, application.opportunity_id,
    )
    if opportunity is not None and opportunity.organization_id:
        _secondary(
            outcome, "notify_organization",
            notification_service.create,
            store,
            opportunity.organization_id,
            f'New application from {applicant_name} for "{application.opportunity_title}"',
            ORGANIZATION_APPLICATIONS_LINK,
        )
    elif "lookup_opportunity" not in outcome.failed_steps:
        logger.warning(
            "Opportunity %s not found; organization not notified of application %s",
            application.opportunity_id, application.id,
        )

    return outcome


# ---------------------------------------------------------------------------
# Accept / reject
# ---------------------------------------------------------------------------
def accept_application(
    store: DatasetStore,
    application_id: str,
    volunteer_id: str,
    organization_id: str,
    organization_name: str,
    *,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> WorkflowOutcome:
    """Accept a submitted application and open the conversation with the volunteer.

    Raises
    ------
    NotFoundError
        Unknown application.
    AccessDeniedError
        The application is not this volunteer's, or the opportunity is not
        this organization's.
    InvalidTransitionError
        The application is no longer ``submitted``.
    """
    current = application_service.get_application(store, application_id)
    if current.volunteer_id != volunteer_id:
        raise AccessDeniedError("Application does not belong to this volunteer.")
    _check_owner(store, current, organization_id)

    application = application_service.set_status(store, application_id, ApplicationStatus.ACCEPTED)
    outcome = WorkflowOutcome(application=application)
    title = application.opportunity_title

    conversation = _secondary(
        outcome, "create_conversation",
        messaging_service.create_conversation,
        store,
        organization_id=organization_id,
        volunteer_id=volunteer_id,
        opportunity_id=application.opportunity_id,
        initial_message=(
            f'Congratulations! Your application for "{title}" has been accepted. '
            "Let's coordinate next steps."
        ),
        opportunity_title=title,
        organization_name=organization_name,
        volunteer_name=application.applicant_name,
    )
    if conversation is not None:
        outcome.conversation_id = conversation.id

    _secondary(
        outcome, "acceptance_points",
        gamification_service.add_points,
        store, volunteer_id, config.acceptance_points, f"Application accepted for: {title}",
    )

    link = conversation_link(outcome.conversation_id) if outcome.conversation_id else VOLUNTEER_DASHBOARD_LINK
    _secondary(
        outcome, "notify_volunteer",
        notification_service.create,
        store, volunteer_id, f'Your application for "{title}" has been accepted!', link,
    )

    logger.info(
        "Application %s accepted by %s (conversation=%s, failed=%s)",
        application_id, organization_id, outcome.conversation_id, outcome.failed_steps or "none",
    )
    return outcome


def reject_application(
    store: DatasetStore, application_id: str, *, organization_id: str | None = None,
) -> WorkflowOutcome:
    """Reject a submitted application and tell the volunteer.  No points."""
    _check_owner(store, application_service.get_application(store, application_id), organization_id)
    application = application_service.set_status(store, application_id, ApplicationStatus.REJECTED)
    outcome = WorkflowOutcome(application=application)

    _secondary(
        outcome, "notify_volunteer",
        notification_service.create,
        store,
        application.volunteer_id,
        f'Unfortunately, your application for "{application.opportunity_title}" '
        "was not accepted at this time.",
        VOLUNTEER_DASHBOARD_LINK,
    )
    return outcome


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------
def record_performance(
    store: DatasetStore,
    application_id: str,
    *,
    attendance: Attendance | str,
    org_rating: int | None = None,
    hours_logged_by_org: float | None = None,
    organization_id: str | None = None,
    config: BazaarConfig = DEFAULT_CONFIG,
) -> WorkflowOutcome:
    """Record how an accepted volunteer did; reward them if they showed up.

    Gamification only runs for ``present``.  Completion points come from the
    opportunity's ``points_awarded`` (0 if the opportunity is gone), the
    rating bonus from ``config.rating_bonus``.
    """
    try:
        attendance = Attendance(attendance)
    except ValueError:
        raise ValidationError(f"Unknown attendance value: {attendance!r}") from None

    _check_owner(store, application_service.get_application(store, application_id), organization_id)
    application = application_service.record_performance(
        store,
        application_id,
        attendance=attendance,
        org_rating=org_rating,
        hours_logged_by_org=hours_logged_by_org,
    )
    outcome = WorkflowOutcome(application=application)
    if application.attendance != Attendance.PRESENT:
        return outcome

    volunteer_id = application.volunteer_id
    title = application.opportunity_title

    opportunity = _secondary(
        outcome, "lookup_opportunity",
        directory_service.get_opportunity, store, application.opportunity_id,
    )
    if opportunity is None:
        logger.warning(
            "Opportunity %s not found; no completion points for application %s",
            application.opportunity_id, application_id,
        )
    elif opportunity.points_awarded > 0:
        _secondary(
            outcome, "completion_points",
            gamification_service.add_points,
            store, volunteer_id, opportunity.points_awarded, f"Completed: {title}",
        )

    bonus = config.bonus_for_rating(org_rating)
    if bonus > 0:
        _secondary(
            outcome, "rating_bonus",
            gamification_service.add_points,
            store, volunteer_id, bonus, f"Received {org_rating}-star rating for: {title}",
        )

    if hours_logged_by_org is not None and hours_logged_by_org > 0:
        _secondary(
            outcome, "log_hours",
            gamification_service.log_hours,
            store, volunteer_id, hours_logged_by_org, f"Volunteered for: {title}",
            milestones=config.hour_milestones,
        )

    _secondary(
        outcome, "notify_volunteer",
        notification_service.create,
        store,
        volunteer_id,
        f'Your participation for "{title}" has been recorded. Thank you!',
        VOLUNTEER_DASHBOARD_LINK,
    )
    return outcome
