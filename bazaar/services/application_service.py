"""
bazaar.services.application_service — Application Persistence & Transitions
============================================================================

Owns the ``applications`` dataset and the application state machine::

    submitted ──accept──▶ accepted ──performance(present)──▶ completed
    submitted ──reject──▶ rejected
    submitted ──withdraw─▶ withdrawn
    accepted  ──performance(absent|pending)──▶ accepted

A volunteer may apply to a given opportunity only once.

Side effects (points, conversations, notifications) are not triggered here;
:mod:`bazaar.services.workflow_service` sequences them around these calls.
"""

from __future__ import annotations

import logging

from bazaar.database.models import ApplicationStatus, Attendance, DatasetKey
from bazaar.database.store import DatasetStore
from bazaar.engine.records import VolunteerApplication, new_id, utc_now
from bazaar.errors import (
    DuplicateApplicationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from bazaar.services import directory_service

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: frozenset({
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.ACCEPTED: frozenset({ApplicationStatus.COMPLETED}),
}


# ---------------------------------------------------------------------------
# Dataset helpers
# ---------------------------------------------------------------------------
def _load(store: DatasetStore) -> list[VolunteerApplication]:
    return [VolunteerApplication.from_dict(raw) for raw in store.load(DatasetKey.APPLICATIONS, [])]


def _save(store: DatasetStore, applications: list[VolunteerApplication]) -> None:
    store.save(DatasetKey.APPLICATIONS, [a.to_dict() for a in applications])


def _find(applications: list[VolunteerApplication], application_id: str) -> VolunteerApplication:
    for app in applications:
        if app.id == application_id:
            return app
    raise NotFoundError("Application not found.")


def _check_transition(app: VolunteerApplication, target: ApplicationStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(app.status, frozenset()):
        raise InvalidTransitionError(
            f"Application is {app.status.value} and cannot be {target.value}."
        )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_application(store: DatasetStore, application_id: str) -> VolunteerApplication:
    return _find(_load(store), application_id)


def list_for_volunteer(store: DatasetStore, volunteer_id: str) -> list[VolunteerApplication]:
    """The volunteer's applications, newest first."""
    apps = [a for a in _load(store) if a.volunteer_id == volunteer_id]
    apps.sort(key=lambda a: a.submitted_at, reverse=True)
    return apps


def list_for_organization(store: DatasetStore, organization_id: str) -> list[VolunteerApplication]:
    """Applications to any opportunity the organization owns, newest first."""
    owned = {
        opp.id for opp in directory_service.list_opportunities(store)
        if opp.organization_id == organization_id
    }
    if not owned:
        return []
    apps = [a for a in _load(store) if a.opportunity_id in owned]
    apps.sort(key=lambda a: a.submitted_at, reverse=True)
    return apps


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def submit(
    store: DatasetStore,
    *,
    opportunity_id: str,
    opportunity_title: str,
    volunteer_id: str,
    applicant_name: str,
    applicant_email: str,
    resume_url: str = "",
    cover_letter: str = "",
) -> VolunteerApplication:
    """Persist a new ``submitted`` application with ``pending`` attendance.

    Raises
    ------
    DuplicateApplicationError
        The volunteer already applied to this opportunity.
    """
    applications = _load(store)
    applied = {(a.opportunity_id, a.volunteer_id) for a in applications}
    if (opportunity_id, volunteer_id) in applied:
        logger.warning("Volunteer %s already applied to %s", volunteer_id, opportunity_id)
        raise DuplicateApplicationError()

    application = VolunteerApplication(
        id=new_id("app"),
        opportunity_id=opportunity_id,
        opportunity_title=opportunity_title,
        volunteer_id=volunteer_id,
        applicant_name=applicant_name,
        applicant_email=applicant_email,
        resume_url=resume_url,
        cover_letter=cover_letter,
        status=ApplicationStatus.SUBMITTED,
        attendance=Attendance.PENDING,
        submitted_at=utc_now(),
    )
    applications.append(application)
    _save(store, applications)

    logger.info("Application %s submitted by %s for %s", application.id, volunteer_id, opportunity_id)
    return application


def set_status(
    store: DatasetStore, application_id: str, status: ApplicationStatus,
) -> VolunteerApplication:
    """Move an application to *status* if the state machine allows it."""
    applications = _load(store)
    app = _find(applications, application_id)
    _check_transition(app, status)

    previous = app.status
    app.status = status
    _save(store, applications)

    logger.info("Application %s: %s → %s", application_id, previous.value, status.value)
    return app


def record_performance(
    store: DatasetStore,
    application_id: str,
    *,
    attendance: Attendance,
    org_rating: int | None = None,
    hours_logged_by_org: float | None = None,
) -> VolunteerApplication:
    """Store attendance / rating / hours; ``present`` completes the application.

    Only accepted applications can have performance recorded.

    Raises
    ------
    NotFoundError, InvalidTransitionError, ValidationError
    """
    if org_rating is not None and not 1 <= org_rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")
    if hours_logged_by_org is not None and hours_logged_by_org < 0:
        raise ValidationError("Logged hours must not be negative.")

    applications = _load(store)
    app = _find(applications, application_id)
    if app.status != ApplicationStatus.ACCEPTED:
        raise InvalidTransitionError(
            f"Performance can only be recorded for accepted applications (this one is {app.status.value})."
        )

    app.attendance = attendance
    if org_rating is not None:
        app.org_rating = org_rating
    if hours_logged_by_org is not None:
        app.hours_logged_by_org = hours_logged_by_org
    if attendance == Attendance.PRESENT:
        _check_transition(app, ApplicationStatus.COMPLETED)
        app.status = ApplicationStatus.COMPLETED

    _save(store, applications)
    logger.info(
        "Performance recorded for %s: attendance=%s rating=%s hours=%s",
        application_id, attendance.value, org_rating, hours_logged_by_org,
    )
    return app
