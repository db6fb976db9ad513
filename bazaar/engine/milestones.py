"""
bazaar.engine.milestones — Hour-Milestone Badge Evaluation
===========================================================

Pure calculation — no dataset I/O.  Given a volunteer's cumulative hours and
the badges they already hold, decide which milestone badges are now due.

Milestones are always walked in ascending ``hours`` order so that a single
large hour-log can award several badges in one call, lowest first.  The
ledger awards each due badge through ``award_badge``, whose own dedup makes
re-evaluation harmless.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HourMilestone:
    """A configured hours threshold that awards *badge* once reached."""

    hours: float
    badge: str
    reason: str = ""

    def __post_init__(self) -> None:
        if not math.isfinite(self.hours) or self.hours <= 0:
            raise ValueError(f"Milestone hours must be positive, got {self.hours!r}")
        if not self.badge:
            raise ValueError("Milestone badge name must not be empty")

    @property
    def award_reason(self) -> str:
        return self.reason or f"Volunteering for {self.hours:g} hours"


def sort_milestones(milestones: Iterable[HourMilestone]) -> tuple[HourMilestone, ...]:
    """Return *milestones* in ascending threshold order (stable on ties)."""
    return tuple(sorted(milestones, key=lambda m: m.hours))


def due_milestones(
    total_hours: float,
    earned_badges: Iterable[str],
    milestones: Iterable[HourMilestone],
) -> list[HourMilestone]:
    """Milestones reached by *total_hours* whose badge is not yet earned.

    Parameters
    ----------
    total_hours : Cumulative hours after the latest log.
    earned_badges : Badge names the volunteer already holds.
    milestones : Configured milestones, any order.

    Returns
    -------
    Due milestones in ascending threshold order.
    """
    if not math.isfinite(total_hours):
        return []
    earned = set(earned_badges)
    due: list[HourMilestone] = []
    for milestone in sort_milestones(milestones):
        if total_hours < milestone.hours:
            break
        if milestone.badge in earned:
            continue
        due.append(milestone)
        # Two milestones may share a badge name; only award it once.
        earned.add(milestone.badge)
    if due:
        logger.debug(
            "%d hour milestone(s) due at %.2f hours: %s",
            len(due), total_hours, ", ".join(m.badge for m in due),
        )
    return due
