"""
bazaar.constants — Shared Constants
====================================

Single source of truth for dataset keys, their empty defaults, the default
hour milestones and the in-app link paths used by notifications.
"""

from __future__ import annotations

from bazaar.database.models import DatasetKey

# ---------------------------------------------------------------------------
# Dataset defaults — what ``load`` returns before a dataset is first written
# ---------------------------------------------------------------------------
DATASET_DEFAULTS: dict[DatasetKey, object] = {
    DatasetKey.USERS: [],
    DatasetKey.OPPORTUNITIES: [],
    DatasetKey.APPLICATIONS: [],
    DatasetKey.CONVERSATIONS: [],
    DatasetKey.GAMIFICATION_LOG: [],
    DatasetKey.USER_STATS: {},
    DatasetKey.NOTIFICATIONS: [],
}


def empty_dataset(key: DatasetKey) -> object:
    """Return a fresh empty value for *key* (never a shared instance)."""
    default = DATASET_DEFAULTS[key]
    return type(default)()


# ---------------------------------------------------------------------------
# Gamification policy defaults (overridable in config.yaml)
# ---------------------------------------------------------------------------
APPLICATION_POINTS = 5
ACCEPTANCE_POINTS = 10
RATING_BONUS: dict[int, int] = {5: 20, 4: 10}

# (hours, badge name, reason) — ascending by hours
DEFAULT_HOUR_MILESTONES: list[tuple[float, str, str]] = [
    (10, "10 Hour Hero", "Volunteering for 10 hours"),
    (50, "50 Hour Superstar", "Volunteering for 50 hours"),
    (100, "100 Hour Champion", "Volunteering for 100 hours"),
]

LEADERBOARD_LIMIT = 10


# ---------------------------------------------------------------------------
# In-app link paths carried on notifications
# ---------------------------------------------------------------------------
VOLUNTEER_DASHBOARD_LINK = "/dashboard/volunteer"
ORGANIZATION_APPLICATIONS_LINK = "/dashboard/organization/applications"


def conversation_link(conversation_id: str) -> str:
    return f"/dashboard/messages/{conversation_id}"
