"""
tests/test_gamification_service.py — Points / Hours / Badges Ledger
====================================================================

Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

import pytest

from bazaar.database.models import DatasetKey, LedgerEntryType, UserRole
from bazaar.engine.milestones import HourMilestone
from bazaar.engine.records import UserProfile
from bazaar.errors import ValidationError
from bazaar.services import directory_service, gamification_service as gs


def _log(store):
    return store.load(DatasetKey.GAMIFICATION_LOG, [])


class TestStats:
    def test_unknown_user_has_zero_stats(self, store):
        stats = gs.get_user_stats(store, "nobody")
        assert (stats.points, stats.hours, stats.badges) == (0, 0.0, [])

    def test_returned_stats_are_copies(self, store):
        stats = gs.add_points(store, "u1", 5, "x")
        stats.badges.append("tampered")
        assert gs.get_user_stats(store, "u1").badges == []


class TestPoints:
    def test_points_are_not_idempotent(self, store):
        gs.add_points(store, "u1", 10, "x")
        stats = gs.add_points(store, "u1", 10, "x")
        assert stats.points == 20
        entries = _log(store)
        assert len(entries) == 2
        assert all(e["type"] == LedgerEntryType.POINTS for e in entries)

    @pytest.mark.parametrize("amount", [0, -3])
    def test_non_positive_points_are_noop(self, store, amount):
        gs.add_points(store, "u1", 7, "seed")
        stats = gs.add_points(store, "u1", amount, "x")
        assert stats.points == 7
        assert len(_log(store)) == 1

    def test_non_finite_points_rejected(self, store):
        with pytest.raises(ValidationError, match="finite"):
            gs.add_points(store, "u1", float("nan"), "x")
        assert _log(store) == []

    def test_log_entry_carries_reason_and_value(self, store):
        gs.add_points(store, "u1", 15, "Completed: Beach Cleanup")
        [entry] = gs.get_log_for_user(store, "u1")
        assert entry.value == 15
        assert entry.reason == "Completed: Beach Cleanup"
        assert entry.timestamp.tzinfo is not None


class TestBadges:
    def test_badge_award_is_idempotent(self, store):
        gs.award_badge(store, "u1", "Early Bird", "first")
        stats = gs.award_badge(store, "u1", "Early Bird", "again")
        assert stats.badges.count("Early Bird") == 1
        assert len(_log(store)) == 1

    def test_badges_keep_earned_order(self, store):
        gs.award_badge(store, "u1", "B", "r")
        gs.award_badge(store, "u1", "A", "r")
        assert gs.get_user_stats(store, "u1").badges == ["B", "A"]

    def test_empty_badge_name_rejected(self, store):
        with pytest.raises(ValidationError):
            gs.award_badge(store, "u1", "  ", "r")


class TestHours:
    def test_negative_hours_are_noop(self, store):
        stats = gs.log_hours(store, "u1", -5, "x")
        assert stats.hours == 0
        assert _log(store) == []
        assert store.load(DatasetKey.USER_STATS, {}) == {}

    @pytest.mark.parametrize("hours", [float("nan"), float("inf")])
    def test_non_finite_hours_rejected_without_write(self, store, hours):
        gs.log_hours(store, "u1", 5, "a")
        with pytest.raises(ValidationError, match="finite"):
            gs.log_hours(store, "u1", hours, "b")
        stats = gs.log_hours(store, "u1", 60, "c")
        assert stats.hours == 65
        assert stats.badges == ["10 Hour Hero", "50 Hour Superstar"]

    def test_sixty_hours_cascades_two_badges(self, store):
        stats = gs.log_hours(store, "u1", 60, "event")
        assert stats.hours == 60
        assert stats.badges == ["10 Hour Hero", "50 Hour Superstar"]

        types = [e.type for e in gs.get_log_for_user(store, "u1")]
        assert types == [LedgerEntryType.HOURS, LedgerEntryType.BADGE, LedgerEntryType.BADGE]

    def test_crossing_threshold_later_awards_once(self, store):
        gs.log_hours(store, "u1", 8, "a")
        gs.log_hours(store, "u1", 4, "b")
        stats = gs.log_hours(store, "u1", 1, "c")
        assert stats.badges == ["10 Hour Hero"]
        badge_entries = [e for e in gs.get_log_for_user(store, "u1") if e.type == LedgerEntryType.BADGE]
        assert len(badge_entries) == 1

    def test_custom_milestones(self, store):
        stats = gs.log_hours(store, "u1", 3, "x", milestones=[HourMilestone(2, "Two Timer")])
        assert stats.badges == ["Two Timer"]


class TestLeaderboard:
    def _seed(self, store):
        for uid, name, role, points in [
            ("v1", "Ann", UserRole.VOLUNTEER, 50),
            ("v2", "Bob", UserRole.VOLUNTEER, 20),
            ("o1", "Org", UserRole.ORGANIZATION, 500),
            ("v3", "Cat", UserRole.VOLUNTEER, 80),
        ]:
            directory_service.upsert_user(store, UserProfile(id=uid, name=name, role=role))
            gs.add_points(store, uid, points, "seed")

    def test_top_two_volunteers_exclude_organizations(self, store):
        self._seed(store)
        board = gs.get_leaderboard(store, 2)
        assert [(e.user_id, e.points) for e in board] == [("v3", 80), ("v1", 50)]
        assert board[0].user_name == "Cat"

    def test_stats_without_profile_are_skipped(self, store):
        gs.add_points(store, "ghost", 999, "x")
        assert gs.get_leaderboard(store, 10) == []

    def test_users_without_a_role_are_skipped(self, store):
        store.save(DatasetKey.USERS, [{"id": "new-1", "name": "Undecided", "role": None}, {"id": "new-2", "name": "Blank"}])
        gs.add_points(store, "new-1", 999, "x")
        gs.add_points(store, "new-2", 999, "x")
        assert directory_service.get_user(store, "new-1").role is None
        assert gs.get_leaderboard(store, 10) == []

    def test_non_positive_limit_returns_empty(self, store):
        self._seed(store)
        assert gs.get_leaderboard(store, 0) == []
