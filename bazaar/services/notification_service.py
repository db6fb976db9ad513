"""
bazaar.services.notification_service — Per-User Notifications
==============================================================

Fire-and-forget side channel used by the workflow and messaging.  Stored in
the ``notifications`` dataset; entries are only ever appended and their
single ``is_read`` flag flipped — nothing is deleted.
"""

from __future__ import annotations

import logging

from bazaar.database.models import DatasetKey
from bazaar.database.store import DatasetStore
from bazaar.engine.records import UserNotification, new_id, utc_now

logger = logging.getLogger(__name__)


def _load(store: DatasetStore) -> list[UserNotification]:
    return [UserNotification.from_dict(raw) for raw in store.load(DatasetKey.NOTIFICATIONS, [])]


def _save(store: DatasetStore, notifications: list[UserNotification]) -> None:
    store.save(DatasetKey.NOTIFICATIONS, [n.to_dict() for n in notifications])


def create(store: DatasetStore, user_id: str, message: str, link: str | None = None) -> UserNotification:
    """Append an unread notification for *user_id*."""
    notification = UserNotification(
        id=new_id("notif"),
        user_id=user_id,
        message=message,
        link=link,
        is_read=False,
        timestamp=utc_now(),
    )
    raw = store.load(DatasetKey.NOTIFICATIONS, [])
    raw.append(notification.to_dict())
    store.save(DatasetKey.NOTIFICATIONS, raw)

    logger.info("Notification %s created for %s", notification.id, user_id)
    return notification


def list_for_user(store: DatasetStore, user_id: str, *, include_read: bool = True) -> list[UserNotification]:
    """The user's notifications, newest first."""
    mine = [
        n for n in _load(store)
        if n.user_id == user_id and (include_read or not n.is_read)
    ]
    mine.sort(key=lambda n: n.timestamp, reverse=True)
    return mine


def mark_read(store: DatasetStore, notification_id: str, user_id: str) -> UserNotification | None:
    """Mark one notification read.

    Returns ``None`` (not an error) when the id is unknown or the
    notification belongs to someone else.
    """
    notifications = _load(store)
    for notification in notifications:
        if notification.id == notification_id and notification.user_id == user_id:
            break
    else:
        logger.info("Notification %s not found or not owned by %s", notification_id, user_id)
        return None

    if not notification.is_read:
        notification.is_read = True
        _save(store, notifications)
        logger.info("Notification %s marked read for %s", notification_id, user_id)
    return notification


def mark_all_read(store: DatasetStore, user_id: str) -> int:
    """Mark every unread notification of *user_id* read.  Returns the count."""
    notifications = _load(store)
    count = 0
    for notification in notifications:
        if notification.user_id == user_id and not notification.is_read:
            notification.is_read = True
            count += 1

    if count:
        _save(store, notifications)
        logger.info("Marked %d notification(s) read for %s", count, user_id)
    return count
