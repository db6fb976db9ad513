"""
bazaar.services.directory_service — Users & Opportunities
==========================================================

Lookups the core needs from the ``users`` and ``opportunities`` datasets:
the leaderboard join, the completion-points lookup and the organisation to
notify when someone applies.  Profile editing and opportunity CRUD forms
live in the web layer; the upserts here exist for seeding and imports.
"""

from __future__ import annotations

import logging

from bazaar.database.models import DatasetKey
from bazaar.database.store import DatasetStore
from bazaar.engine.records import Opportunity, UserProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
def list_users(store: DatasetStore) -> list[UserProfile]:
    return [UserProfile.from_dict(raw) for raw in store.load(DatasetKey.USERS, [])]


def get_user(store: DatasetStore, user_id: str) -> UserProfile | None:
    """Fetch one profile, or ``None`` if the id is unknown."""
    for user in list_users(store):
        if user.id == user_id:
            return user
    return None


def upsert_user(store: DatasetStore, profile: UserProfile) -> UserProfile:
    """Insert *profile* or replace the existing profile with the same id."""
    users = store.load(DatasetKey.USERS, [])
    for i, raw in enumerate(users):
        if str(raw.get("id")) == profile.id:
            users[i] = profile.to_dict()
            break
    else:
        users.append(profile.to_dict())
    store.save(DatasetKey.USERS, users)
    return profile


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------
def list_opportunities(store: DatasetStore) -> list[Opportunity]:
    return [Opportunity.from_dict(raw) for raw in store.load(DatasetKey.OPPORTUNITIES, [])]


def get_opportunity(store: DatasetStore, opportunity_id: str) -> Opportunity | None:
    for opp in list_opportunities(store):
        if opp.id == opportunity_id:
            return opp
    return None


def upsert_opportunity(store: DatasetStore, opportunity: Opportunity) -> Opportunity:
    opportunities = store.load(DatasetKey.OPPORTUNITIES, [])
    for i, raw in enumerate(opportunities):
        if str(raw.get("id")) == opportunity.id:
            opportunities[i] = opportunity.to_dict()
            break
    else:
        opportunities.append(opportunity.to_dict())
    store.save(DatasetKey.OPPORTUNITIES, opportunities)
    return opportunity
