"""
bazaar.api.routes.notifications — The caller's notification feed
==================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from bazaar.api.deps import CurrentUser, get_current_user, get_store
from bazaar.database.store import DatasetStore
from bazaar.services import actions

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    include_read: bool = Query(False),
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.list_notifications(store, user.id, include_read=include_read).to_dict()


@router.post("/read-all")
def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.mark_all_notifications_read(store, user.id).to_dict()


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.mark_notification_read(store, notification_id, user.id).to_dict()
