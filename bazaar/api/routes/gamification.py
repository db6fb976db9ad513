"""
bazaar.api.routes.gamification — Stats, leaderboard and admin awards
======================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from bazaar.api.deps import CurrentUser, get_config, get_current_user, get_store, require_role
from bazaar.config import BazaarConfig
from bazaar.database.models import UserRole
from bazaar.database.store import DatasetStore
from bazaar.services import actions

router = APIRouter(tags=["gamification"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class PointsAward(BaseModel):
    user_id: str
    amount: int
    reason: str = "Manual adjustment"


class BadgeAward(BaseModel):
    user_id: str
    badge_name: str = Field(min_length=1)
    reason: str = "Awarded by admin"


class HoursEntry(BaseModel):
    user_id: str
    hours: float
    reason: str = "Hours logged by admin"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/stats/me")
def my_stats(
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.get_user_stats(store, user.id).to_dict()


@router.get("/leaderboard")
def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    store: DatasetStore = Depends(get_store),
    cfg: BazaarConfig = Depends(get_config),
):
    """Top volunteers by points.  Public."""
    return actions.get_leaderboard(store, limit, config=cfg).to_dict()


@router.get("/gamification/log/me")
def my_log(
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.get_log_for_user(store, user.id).to_dict()


# ---------------------------------------------------------------------------
# Admin awards
# ---------------------------------------------------------------------------
@router.post("/admin/points")
def admin_add_points(
    body: PointsAward,
    admin: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    store: DatasetStore = Depends(get_store),
):
    return actions.add_points(store, body.user_id, body.amount, body.reason).to_dict()


@router.post("/admin/badges")
def admin_award_badge(
    body: BadgeAward,
    admin: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    store: DatasetStore = Depends(get_store),
):
    return actions.award_badge(store, body.user_id, body.badge_name, body.reason).to_dict()


@router.post("/admin/hours")
def admin_log_hours(
    body: HoursEntry,
    admin: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    store: DatasetStore = Depends(get_store),
    cfg: BazaarConfig = Depends(get_config),
):
    return actions.log_hours(store, body.user_id, body.hours, body.reason, config=cfg).to_dict()
