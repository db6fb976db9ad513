"""
bazaar.engine.inbox — Conversation Aggregates
==============================================

Pure functions over loaded :class:`~bazaar.engine.records.Conversation`
objects: who may view a thread, how many messages are unread for a viewer,
which messages a view marks as read, and how threads and messages are
ordered for display.  No dataset I/O happens here.

Unread counts are never stored; they are derived from each message's
``is_read`` flag every time an inbox is listed.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from bazaar.database.models import UserRole
from bazaar.engine.records import Conversation, Message

ParticipantKey = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Participation
# ---------------------------------------------------------------------------
def is_viewer(conversation: Conversation, user_id: str, role: UserRole | str) -> bool:
    """True if *user_id* is the conversation's participant for *role*.

    Only volunteers and organizations take part in conversations; any other
    role is never a viewer.
    """
    if role == UserRole.VOLUNTEER:
        return conversation.volunteer_id == user_id
    if role == UserRole.ORGANIZATION:
        return conversation.organization_id == user_id
    return False


def index_by_participants(
    conversations: Iterable[Conversation],
) -> dict[ParticipantKey, Conversation]:
    """Map ``(organization_id, volunteer_id, opportunity_id)`` → conversation.

    If a dataset already holds duplicates for one key the earliest entry
    wins, matching a front-to-back search.
    """
    index: dict[ParticipantKey, Conversation] = {}
    for convo in conversations:
        index.setdefault(convo.participant_key, convo)
    return index


# ---------------------------------------------------------------------------
# Read state
# ---------------------------------------------------------------------------
def count_unread(conversation: Conversation, viewer_id: str) -> int:
    """Messages from the *other* participant that are still unread."""
    return sum(
        1 for msg in conversation.messages
        if msg.sender_id != viewer_id and not msg.is_read
    )


def mark_read_for(conversation: Conversation, viewer_id: str, now: datetime) -> int:
    """Flip ``is_read`` on every unread message not sent by *viewer_id*.

    The viewer's own messages are left alone.  When anything flips,
    ``updated_at`` moves to *now* (never earlier than ``created_at``) and the
    denormalised ``last_message`` copy is kept in step.

    Returns the number of messages flipped.
    """
    flipped = 0
    for msg in conversation.messages:
        if msg.sender_id != viewer_id and not msg.is_read:
            msg.is_read = True
            flipped += 1

    if flipped:
        conversation.updated_at = max(conversation.created_at, now)
        last = conversation.last_message
        if last is not None and last.sender_id != viewer_id:
            last.is_read = True
    return flipped


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------
def activity_time(conversation: Conversation) -> datetime:
    """Timestamp an inbox is sorted by: last message, else creation."""
    if conversation.last_message is not None:
        return conversation.last_message.timestamp
    return conversation.created_at


def sort_inbox(conversations: Iterable[Conversation]) -> list[Conversation]:
    """Most recently active conversation first."""
    return sorted(conversations, key=activity_time, reverse=True)


def chronological(messages: Iterable[Message]) -> list[Message]:
    """Oldest message first; insertion order breaks timestamp ties."""
    return sorted(messages, key=lambda m: m.timestamp)
