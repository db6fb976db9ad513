"""
tests/test_milestones.py — Hour-Milestone Evaluation (pure)
============================================================
"""

from __future__ import annotations

import pytest

from bazaar.config import DEFAULT_CONFIG
from bazaar.engine.milestones import HourMilestone, due_milestones, sort_milestones

HERO = HourMilestone(10, "10 Hour Hero")
STAR = HourMilestone(50, "50 Hour Superstar")
CHAMP = HourMilestone(100, "100 Hour Champion")


class TestDueMilestones:
    def test_nothing_due_below_first_threshold(self):
        assert due_milestones(9.5, [], [HERO, STAR]) == []

    def test_threshold_is_inclusive(self):
        assert due_milestones(10, [], [HERO, STAR]) == [HERO]

    def test_large_log_awards_several_in_ascending_order(self):
        assert due_milestones(60, [], [STAR, CHAMP, HERO]) == [HERO, STAR]

    def test_already_earned_badges_are_skipped(self):
        assert due_milestones(120, ["10 Hour Hero", "100 Hour Champion"], [HERO, STAR, CHAMP]) == [STAR]

    def test_non_finite_total_awards_nothing(self):
        assert due_milestones(float("nan"), [], [HERO, STAR, CHAMP]) == []

    def test_shared_badge_name_awarded_once(self):
        again = HourMilestone(20, "10 Hour Hero")
        assert due_milestones(25, [], [HERO, again]) == [HERO]


class TestHourMilestone:
    def test_default_reason(self):
        assert HERO.award_reason == "Volunteering for 10 hours"

    def test_explicit_reason_wins(self):
        assert HourMilestone(5, "Starter", "First five!").award_reason == "First five!"

    @pytest.mark.parametrize("hours", [0, -1, float("nan"), float("inf")])
    def test_non_positive_or_non_finite_hours_rejected(self, hours):
        with pytest.raises(ValueError):
            HourMilestone(hours, "Bad")

    def test_empty_badge_rejected(self):
        with pytest.raises(ValueError):
            HourMilestone(5, "")

    def test_sort_is_ascending(self):
        assert sort_milestones([CHAMP, HERO, STAR]) == (HERO, STAR, CHAMP)

    def test_default_config_milestones(self):
        assert [m.badge for m in DEFAULT_CONFIG.hour_milestones] == [
            "10 Hour Hero", "50 Hour Superstar", "100 Hour Champion",
        ]
