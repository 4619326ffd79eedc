# accounts/gamification.py
"""
Gamification Engine
===================

Pure, read-only derivations over an account's ledger values.
No ORM access here: callers pass plain values and persist the results.

Level curve:
    level          = floor(sqrt(total_points / LEVEL_BASE_XP)) + 1
    level start    = LEVEL_BASE_XP * (level - 1) ** 2
    next level at  = LEVEL_BASE_XP * level ** 2
"""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass
from typing import Optional

LEVEL_BASE_XP = 1000
DEFAULT_DAILY_GOAL = 500


@dataclass(frozen=True)
class LevelProgress:
    level: int
    current_threshold: int
    next_threshold: int
    progress_percent: float

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "current_threshold": self.current_threshold,
            "next_threshold": self.next_threshold,
            "progress_percent": self.progress_percent,
        }


@dataclass(frozen=True)
class LedgerStep:
    """New daily counters after an award lands at `activity_at`."""

    daily_xp: int
    streak: int
    activity_at: datetime.datetime


def level_for_points(total_points: int) -> int:
    # isqrt on the integer quotient equals floor(sqrt(total / base)).
    total = max(0, int(total_points))
    return math.isqrt(total // LEVEL_BASE_XP) + 1


def level_threshold(level: int) -> int:
    """XP required to reach `level` (level 1 starts at 0)."""
    return LEVEL_BASE_XP * (max(1, level) - 1) ** 2


def level_progress(total_points: int) -> LevelProgress:
    total = max(0, int(total_points))
    level = level_for_points(total)
    current = level_threshold(level)
    nxt = level_threshold(level + 1)

    percent = (total - current) / float(nxt - current) * 100.0
    percent = max(0.0, min(100.0, percent))

    return LevelProgress(
        level=level,
        current_threshold=current,
        next_threshold=nxt,
        progress_percent=round(percent, 2),
    )


def utc_date(moment: Optional[datetime.datetime]) -> Optional[datetime.date]:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc).date()


def needs_daily_reset(
    last_log_date: Optional[datetime.datetime],
    now: datetime.datetime,
) -> bool:
    """True when the last activity happened on another UTC calendar day."""
    return utc_date(last_log_date) != utc_date(now)


def continue_streak(
    streak: int,
    last_log_date: Optional[datetime.datetime],
    now: datetime.datetime,
) -> int:
    """
    Streak after activity at `now`.

    Same day keeps the streak (at least 1), the following day extends it,
    anything else starts a new streak.
    """
    last_day = utc_date(last_log_date)
    today = utc_date(now)
    if last_day is None:
        return 1
    if last_day == today:
        return max(1, int(streak or 0))
    if last_day == today - datetime.timedelta(days=1):
        return int(streak or 0) + 1
    return 1


def apply_award(
    daily_xp: int,
    streak: int,
    last_log_date: Optional[datetime.datetime],
    points: int,
    now: datetime.datetime,
) -> LedgerStep:
    """Daily XP and streak after awarding `points` at `now`."""
    points = max(0, int(points))
    if needs_daily_reset(last_log_date, now):
        new_daily = points
    else:
        new_daily = int(daily_xp or 0) + points

    return LedgerStep(
        daily_xp=new_daily,
        streak=continue_streak(streak, last_log_date, now),
        activity_at=now,
    )


def goal_reached(daily_xp: int, daily_goal: int) -> bool:
    return int(daily_xp or 0) >= int(daily_goal or DEFAULT_DAILY_GOAL)
