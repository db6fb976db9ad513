"""
bazaar.api.routes.applications — Submit, review and complete applications
===========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from bazaar.api.deps import CurrentUser, get_config, get_store, require_role
from bazaar.config import BazaarConfig
from bazaar.database.models import Attendance, UserRole
from bazaar.database.store import DatasetStore
from bazaar.services import actions

router = APIRouter(prefix="/applications", tags=["applications"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ApplicationCreate(BaseModel):
    opportunity_id: str
    opportunity_title: str
    applicant_email: str | None = None  # defaults to the profile email
    resume_url: str = ""
    cover_letter: str = ""


class AcceptBody(BaseModel):
    volunteer_id: str


class PerformanceBody(BaseModel):
    attendance: Attendance
    org_rating: int | None = Field(None, ge=1, le=5)
    hours_logged_by_org: float | None = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Volunteer side
# ---------------------------------------------------------------------------
@router.post("")
def submit_application(
    body: ApplicationCreate,
    volunteer: CurrentUser = Depends(require_role(UserRole.VOLUNTEER)),
    store: DatasetStore = Depends(get_store),
    cfg: BazaarConfig = Depends(get_config),
):
    data = body.model_dump()
    data["applicant_email"] = body.applicant_email or volunteer.email
    return actions.submit_application(store, data, volunteer.id, volunteer.name, config=cfg).to_dict()


@router.get("")
def list_applications(
    user: CurrentUser = Depends(require_role(UserRole.VOLUNTEER, UserRole.ORGANIZATION)),
    store: DatasetStore = Depends(get_store),
):
    """Volunteers see their own applications; organisations see applications to their opportunities."""
    if user.role == UserRole.VOLUNTEER:
        return actions.list_applications_for_volunteer(store, user.id).to_dict()
    return actions.list_applications_for_organization(store, user.id).to_dict()


# ---------------------------------------------------------------------------
# Organisation side
# ---------------------------------------------------------------------------
@router.post("/{application_id}/accept")
def accept_application(
    application_id: str,
    body: AcceptBody,
    org: CurrentUser = Depends(require_role(UserRole.ORGANIZATION)),
    store: DatasetStore = Depends(get_store),
    cfg: BazaarConfig = Depends(get_config),
):
    return actions.accept_application(
        store, application_id, body.volunteer_id, org.id, org.name, config=cfg,
    ).to_dict()


@router.post("/{application_id}/reject")
def reject_application(
    application_id: str,
    org: CurrentUser = Depends(require_role(UserRole.ORGANIZATION)),
    store: DatasetStore = Depends(get_store),
):
    return actions.reject_application(store, application_id, organization_id=org.id).to_dict()


@router.post("/{application_id}/performance")
def record_performance(
    application_id: str,
    body: PerformanceBody,
    org: CurrentUser = Depends(require_role(UserRole.ORGANIZATION)),
    store: DatasetStore = Depends(get_store),
    cfg: BazaarConfig = Depends(get_config),
):
    return actions.record_performance(
        store,
        application_id,
        attendance=body.attendance,
        org_rating=body.org_rating,
        hours_logged_by_org=body.hours_logged_by_org,
        organization_id=org.id,
        config=cfg,
    ).to_dict()
