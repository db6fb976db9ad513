"""
bazaar.services.messaging_service — Conversations & Messages
=============================================================

Owns the ``conversations`` dataset: a list of two-party threads, each
carrying its messages inline plus a denormalised copy of the last one.

Lifecycle: a conversation is created (normally when an application is
accepted) and stays active forever — there is no close or archive state.

There is at most one conversation per ``(organization_id, volunteer_id,
opportunity_id)``.  Creating a second one returns the existing thread
**unchanged** and drops the new initial message.

Every operation loads the whole dataset, mutates it and writes it back.
Two requests touching different conversations at the same time can still
overwrite each other's change (last-writer-wins on the whole dataset).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bazaar.database.models import DatasetKey, UserRole
from bazaar.database.store import DatasetStore
from bazaar.engine import inbox
from bazaar.engine.records import Conversation, Message, new_id, utc_now
from bazaar.errors import AccessDeniedError, NotFoundError, UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConversationDetails:
    """A conversation plus its messages in chronological order."""

    conversation: Conversation
    messages: list[Message]

    def to_dict(self) -> dict:
        return {
            "conversation": self.conversation.to_view(include_messages=False),
            "messages": [m.to_dict() for m in self.messages],
        }


# ---------------------------------------------------------------------------
# Dataset helpers
# ---------------------------------------------------------------------------
def _load(store: DatasetStore) -> list[Conversation]:
    return [Conversation.from_dict(raw) for raw in store.load(DatasetKey.CONVERSATIONS, [])]


def _save(store: DatasetStore, conversations: list[Conversation]) -> None:
    store.save(DatasetKey.CONVERSATIONS, [c.to_dict() for c in conversations])


def _find(conversations: list[Conversation], conversation_id: str) -> Conversation:
    for convo in conversations:
        if convo.id == conversation_id:
            return convo
    raise NotFoundError("Conversation not found.")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def create_conversation(
    store: DatasetStore,
    *,
    organization_id: str,
    volunteer_id: str,
    opportunity_id: str,
    initial_message: str,
    opportunity_title: str | None = None,
    organization_name: str | None = None,
    volunteer_name: str | None = None,
) -> Conversation:
    """Open a conversation seeded with one message from the organization.

    If a conversation for the same organization/volunteer/opportunity
    already exists it is returned as-is and *initial_message* is discarded.
    """
    conversations = _load(store)
    existing = inbox.index_by_participants(conversations).get(
        (organization_id, volunteer_id, opportunity_id)
    )
    if existing is not None:
        logger.info("Conversation already exists: %s", existing.id)
        return existing

    if not initial_message or not initial_message.strip():
        raise ValidationError("Initial message must not be empty.")

    conversation_id = new_id("convo")
    now = utc_now()
    first = Message(
        id=new_id("msg"),
        conversation_id=conversation_id,
        sender_id=organization_id,
        text=initial_message,
        timestamp=now,
        is_read=False,
    )
    conversation = Conversation(
        id=conversation_id,
        organization_id=organization_id,
        volunteer_id=volunteer_id,
        opportunity_id=opportunity_id,
        opportunity_title=opportunity_title,
        organization_name=organization_name,
        volunteer_name=volunteer_name,
        messages=[first],
        last_message=Message(**first.to_dict()),
        created_at=now,
        updated_at=now,
    )
    conversations.append(conversation)
    _save(store, conversations)

    logger.info(
        "Conversation %s created (org=%s volunteer=%s opportunity=%s)",
        conversation_id, organization_id, volunteer_id, opportunity_id,
    )
    return conversation


def get_conversations_for_user(
    store: DatasetStore, user_id: str, role: UserRole | str,
) -> list[Conversation]:
    """The user's conversations, most recently active first.

    Each returned conversation has ``unread_count`` set for *user_id*.
    """
    mine = [c for c in _load(store) if inbox.is_viewer(c, user_id, role)]
    for convo in mine:
        convo.unread_count = inbox.count_unread(convo, user_id)
    logger.debug("Found %d conversations for %s %s", len(mine), role, user_id)
    return inbox.sort_inbox(mine)


def get_unread_total(store: DatasetStore, user_id: str, role: UserRole | str) -> int:
    """Sum of unread messages across all of the user's conversations."""
    return sum(
        inbox.count_unread(c, user_id)
        for c in _load(store)
        if inbox.is_viewer(c, user_id, role)
    )


def get_conversation_details(
    store: DatasetStore, conversation_id: str, user_id: str, role: UserRole | str,
) -> ConversationDetails:
    """Open a conversation as *user_id* and mark the other side's messages read.

    Raises
    ------
    NotFoundError
        No conversation with that id.
    AccessDeniedError
        *user_id* is not the participant for *role*.  Nothing is modified.
    """
    conversations = _load(store)
    conversation = _find(conversations, conversation_id)

    if not inbox.is_viewer(conversation, user_id, role):
        raise AccessDeniedError("Access denied to this conversation.")

    flipped = inbox.mark_read_for(conversation, user_id, utc_now())
    if flipped:
        _save(store, conversations)
        logger.info(
            "Marked %d message(s) read for %s in conversation %s",
            flipped, user_id, conversation_id,
        )

    return ConversationDetails(
        conversation=conversation,
        messages=inbox.chronological(conversation.messages),
    )


def send_message(store: DatasetStore, conversation_id: str, sender_id: str, text: str) -> Message:
    """Append a message from *sender_id*.

    Raises
    ------
    NotFoundError
        No conversation with that id.
    UnauthorizedError
        *sender_id* is neither participant.
    ValidationError
        *text* is empty.
    """
    conversations = _load(store)
    conversation = _find(conversations, conversation_id)

    if not conversation.is_participant(sender_id):
        raise UnauthorizedError("Sender is not part of this conversation.")
    if not text or not text.strip():
        raise ValidationError("Message text must not be empty.")

    now = utc_now()
    message = Message(
        id=new_id("msg"),
        conversation_id=conversation_id,
        sender_id=sender_id,
        text=text,
        timestamp=now,
        is_read=False,
    )
    conversation.messages.append(message)
    conversation.last_message = Message(**message.to_dict())
    conversation.updated_at = max(conversation.created_at, now)
    _save(store, conversations)

    logger.info("Message %s sent in conversation %s by %s", message.id, conversation_id, sender_id)
    return message
