"""
bazaar.api.routes.messaging — Conversations between organisations and volunteers
==================================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from bazaar.api.deps import CurrentUser, get_current_user, get_store, require_role
from bazaar.database.models import UserRole
from bazaar.database.store import DatasetStore
from bazaar.services import actions

router = APIRouter(prefix="/conversations", tags=["messaging"])


class ConversationCreate(BaseModel):
    volunteer_id: str
    opportunity_id: str
    initial_message: str = Field(min_length=1)
    opportunity_title: str | None = None
    volunteer_name: str | None = None


class MessageCreate(BaseModel):
    text: str = Field(min_length=1)


@router.get("")
def list_conversations(
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.get_conversations_for_user(store, user.id, user.role).to_dict()


@router.post("")
def start_conversation(
    body: ConversationCreate,
    org: CurrentUser = Depends(require_role(UserRole.ORGANIZATION)),
    store: DatasetStore = Depends(get_store),
):
    return actions.create_conversation(
        store,
        organization_id=org.id,
        organization_name=org.name,
        volunteer_id=body.volunteer_id,
        opportunity_id=body.opportunity_id,
        initial_message=body.initial_message,
        opportunity_title=body.opportunity_title,
        volunteer_name=body.volunteer_name,
    ).to_dict()


@router.get("/unread")
def unread_total(
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.get_unread_total(store, user.id, user.role).to_dict()


@router.get("/{conversation_id}")
def conversation_details(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    """Open a thread; marks the other participant's messages read."""
    return actions.get_conversation_details(store, conversation_id, user.id, user.role).to_dict()


@router.post("/{conversation_id}/messages")
def post_message(
    conversation_id: str,
    body: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    store: DatasetStore = Depends(get_store),
):
    return actions.send_message(store, conversation_id, user.id, body.text).to_dict()
