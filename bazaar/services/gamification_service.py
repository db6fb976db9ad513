"""
bazaar.services.gamification_service — Points / Hours / Badges Ledger
======================================================================

Owns two datasets:

- ``user-stats``        — ``{user_id: {points, hours, badges}}`` aggregates.
- ``gamification-log``  — append-only list of award entries (audit trail).

Aggregates are stored, not recomputed from the log.  Every award loads the
stats dataset, mutates the user's entry, saves it, then appends to and
saves the log.  Points and hours only ever increase; badges are unique per
user and keep the order they were earned in.

Dedup contract:
  * ``add_points`` is **not** idempotent — two calls award twice.
  * ``award_badge`` **is** idempotent — an already-held badge is a no-op
    with no log entry.
  * ``log_hours`` evaluates hour milestones afterwards and awards each due
    badge through ``award_badge``.

"Not found" is zero-state, never an error.  Persistence failures propagate.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

from bazaar.config import DEFAULT_CONFIG
from bazaar.database.models import DatasetKey, LedgerEntryType, UserRole
from bazaar.database.store import DatasetStore
from bazaar.engine.milestones import HourMilestone, due_milestones
from bazaar.engine.records import (
    GamificationLogEntry,
    LeaderboardEntry,
    VolunteerStats,
    utc_now,
)
from bazaar.errors import ValidationError
from bazaar.services import directory_service

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _append_log(store: DatasetStore, entry: GamificationLogEntry) -> None:
    log = store.load(DatasetKey.GAMIFICATION_LOG, [])
    log.append(entry.to_dict())
    store.save(DatasetKey.GAMIFICATION_LOG, log)


def _apply_award(
    store: DatasetStore,
    user_id: str,
    mutate: Callable[[VolunteerStats], GamificationLogEntry | None],
) -> tuple[VolunteerStats, bool]:
    """Load → mutate one user's stats → save stats → append log entry.

    *mutate* returns the log entry to write, or ``None`` to signal that
    nothing changed (no save, no log).

    Returns (stats, changed).
    """
    all_stats = store.load(DatasetKey.USER_STATS, {})
    stats = VolunteerStats.from_dict(all_stats.get(user_id))

    entry = mutate(stats)
    if entry is None:
        return stats, False

    all_stats[user_id] = stats.to_dict()
    store.save(DatasetKey.USER_STATS, all_stats)
    _append_log(store, entry)
    return stats.copy(), True


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_user_stats(store: DatasetStore, user_id: str) -> VolunteerStats:
    """Current stats for *user_id*; all-zero if nothing was ever awarded."""
    all_stats = store.load(DatasetKey.USER_STATS, {})
    return VolunteerStats.from_dict(all_stats.get(user_id))


def get_log_for_user(store: DatasetStore, user_id: str) -> list[GamificationLogEntry]:
    """The user's log entries in the order they were appended."""
    return [
        GamificationLogEntry.from_dict(raw)
        for raw in store.load(DatasetKey.GAMIFICATION_LOG, [])
        if str(raw.get("user_id")) == user_id
    ]


def get_leaderboard(store: DatasetStore, limit: int = 10) -> list[LeaderboardEntry]:
    """Top volunteers by points, highest first.

    Joins ``user-stats`` against the ``users`` dataset and keeps only users
    whose role is ``volunteer``.  Equal points keep the stats dataset's
    iteration order, which callers must treat as unspecified.
    """
    if limit <= 0:
        return []

    users = {u.id: u for u in directory_service.list_users(store)}
    all_stats = store.load(DatasetKey.USER_STATS, {})

    entries: list[LeaderboardEntry] = []
    for user_id, raw in all_stats.items():
        profile = users.get(user_id)
        if profile is None or profile.role != UserRole.VOLUNTEER:
            continue
        stats = VolunteerStats.from_dict(raw)
        entries.append(LeaderboardEntry(user_id=user_id, user_name=profile.name, points=stats.points))

    entries.sort(key=lambda e: e.points, reverse=True)
    return entries[:limit]


# ---------------------------------------------------------------------------
# Awards
# ---------------------------------------------------------------------------
def add_points(store: DatasetStore, user_id: str, amount: int, reason: str) -> VolunteerStats:
    """Add *amount* points.  Non-positive amounts are a silent no-op.

    Raises
    ------
    ValidationError
        If *amount* is NaN or infinite.
    """
    if not math.isfinite(amount):
        raise ValidationError("Points must be a finite number.")
    if amount <= 0:
        return get_user_stats(store, user_id)

    def _mutate(stats: VolunteerStats) -> GamificationLogEntry:
        stats.points += amount
        return GamificationLogEntry(
            user_id=user_id, type=LedgerEntryType.POINTS, value=amount, reason=reason,
        )

    stats, _ = _apply_award(store, user_id, _mutate)
    logger.info("Awarded %d points to %s (%s) → %d total", amount, user_id, reason, stats.points)
    return stats


def award_badge(store: DatasetStore, user_id: str, badge_name: str, reason: str) -> VolunteerStats:
    """Award *badge_name* once.  Already held → stats returned unchanged, no log."""
    if not badge_name or not badge_name.strip():
        raise ValidationError("Badge name must not be empty.")

    def _mutate(stats: VolunteerStats) -> GamificationLogEntry | None:
        if badge_name in stats.badges:
            return None
        stats.badges.append(badge_name)
        return GamificationLogEntry(
            user_id=user_id, type=LedgerEntryType.BADGE, value=badge_name, reason=reason,
        )

    stats, changed = _apply_award(store, user_id, _mutate)
    if changed:
        logger.info("Badge earned: %r for %s (%s)", badge_name, user_id, reason)
    else:
        logger.debug("User %s already holds badge %r", user_id, badge_name)
    return stats


def log_hours(
    store: DatasetStore,
    user_id: str,
    hours: float,
    reason: str,
    *,
    milestones: Sequence[HourMilestone] | None = None,
) -> VolunteerStats:
    """Add *hours* and award any hour-milestone badges now due.

    Non-positive *hours* is a silent no-op; NaN or infinite *hours* raises
    :class:`ValidationError`.  Returns the final stats after every milestone
    badge has been awarded.
    """
    if not math.isfinite(hours):
        raise ValidationError("Hours must be a finite number.")
    if hours <= 0:
        return get_user_stats(store, user_id)

    def _mutate(stats: VolunteerStats) -> GamificationLogEntry:
        stats.hours += hours
        return GamificationLogEntry(
            user_id=user_id, type=LedgerEntryType.HOURS, value=hours, reason=reason,
        )

    stats, _ = _apply_award(store, user_id, _mutate)
    logger.info("Logged %.2f hours for %s (%s) → %.2f total", hours, user_id, reason, stats.hours)

    if milestones is None:
        milestones = DEFAULT_CONFIG.hour_milestones
    for milestone in due_milestones(stats.hours, stats.badges, milestones):
        stats = award_badge(store, user_id, milestone.badge, milestone.award_reason)
    return stats
