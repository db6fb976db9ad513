"""
bazaar.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for the policy constants the core uses: points for
applying and for being accepted, the rating bonus table, the hour
milestones and the default leaderboard size.  Secrets (``JWT_SECRET``,
``DATABASE_URL``) stay in the environment / ``.env``.

Every key is optional; anything missing falls back to the defaults in
:mod:`bazaar.constants`.

Usage::

    from bazaar.config import load_config

    cfg = load_config()                # reads ./config.yaml
    print(cfg.acceptance_points)       # 10
    print(cfg.hour_milestones[0])      # HourMilestone(hours=10, ...)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from bazaar.constants import (
    ACCEPTANCE_POINTS,
    APPLICATION_POINTS,
    DEFAULT_HOUR_MILESTONES,
    LEADERBOARD_LIMIT,
    RATING_BONUS,
)
from bazaar.engine.milestones import HourMilestone, sort_milestones


def _default_milestones() -> tuple[HourMilestone, ...]:
    return sort_milestones(
        HourMilestone(hours=h, badge=b, reason=r) for h, b, r in DEFAULT_HOUR_MILESTONES
    )


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BazaarConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str = "VolunteerBazaar"

    # Dashboard
    dashboard_port: int = 8000

    # Gamification policy
    application_points: int = APPLICATION_POINTS
    acceptance_points: int = ACCEPTANCE_POINTS
    rating_bonus: dict[int, int] = field(default_factory=lambda: dict(RATING_BONUS))
    hour_milestones: tuple[HourMilestone, ...] = field(default_factory=_default_milestones)
    leaderboard_limit: int = LEADERBOARD_LIMIT

    def bonus_for_rating(self, rating: int | None) -> int:
        """Bonus points for an organisation rating (0 when none applies)."""
        if rating is None:
            return 0
        return self.rating_bonus.get(int(rating), 0)


DEFAULT_CONFIG = BazaarConfig()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BazaarConfig:
    """Read *path* and return a :class:`BazaarConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a milestone entry is malformed.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> BazaarConfig:
    """Build a :class:`BazaarConfig` from an already-parsed mapping."""
    defaults = DEFAULT_CONFIG

    milestones = defaults.hour_milestones
    if raw.get("hour_milestones") is not None:
        milestones = sort_milestones(
            HourMilestone(
                hours=float(entry["hours"]),
                badge=str(entry["badge"]),
                reason=str(entry.get("reason", "")),
            )
            for entry in raw["hour_milestones"]
        )

    rating_bonus = defaults.rating_bonus
    if raw.get("rating_bonus") is not None:
        rating_bonus = {int(k): int(v) for k, v in raw["rating_bonus"].items()}

    return BazaarConfig(
        community_name=raw.get("community_name", defaults.community_name),
        dashboard_port=int(raw.get("dashboard_port", defaults.dashboard_port)),
        application_points=int(raw.get("application_points", defaults.application_points)),
        acceptance_points=int(raw.get("acceptance_points", defaults.acceptance_points)),
        rating_bonus=rating_bonus,
        hour_milestones=milestones,
        leaderboard_limit=int(raw.get("leaderboard_limit", defaults.leaderboard_limit)),
    )
