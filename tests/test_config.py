"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from bazaar.config import DEFAULT_CONFIG, config_from_dict, load_config


class TestLoadConfig:
    def test_missing_file_raises_with_hint(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "config.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == DEFAULT_CONFIG

    def test_overrides_and_milestone_ordering(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "community_name: Riverside Helpers\n"
            "acceptance_points: 15\n"
            "rating_bonus:\n"
            "  5: 30\n"
            "hour_milestones:\n"
            "  - {hours: 25, badge: Quarter Century}\n"
            "  - {hours: 5, badge: Warm Up, reason: First shifts done}\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.community_name == "Riverside Helpers"
        assert cfg.acceptance_points == 15
        assert cfg.application_points == DEFAULT_CONFIG.application_points
        assert [m.badge for m in cfg.hour_milestones] == ["Warm Up", "Quarter Century"]
        assert cfg.hour_milestones[0].award_reason == "First shifts done"
        assert cfg.bonus_for_rating(5) == 30
        assert cfg.bonus_for_rating(4) == 0


class TestRatingBonus:
    @pytest.mark.parametrize(("rating", "bonus"), [(5, 20), (4, 10), (3, 0), (None, 0)])
    def test_default_table(self, rating, bonus):
        assert DEFAULT_CONFIG.bonus_for_rating(rating) == bonus

    def test_bad_milestone_rejected(self):
        with pytest.raises(ValueError):
            config_from_dict({"hour_milestones": [{"hours": 0, "badge": "Zero"}]})
