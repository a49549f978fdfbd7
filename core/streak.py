#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Streak Evaluator
Once-per-session check of consecutive active calendar days

Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from core.models import Stats
from utils.datetime_utils import date_part, now_local

logger = logging.getLogger(__name__)

class StreakOutcome(Enum):
    UNCHANGED = "unchanged"
    CONTINUED = "continued"
    RESET = "reset"

@dataclass(frozen=True)
class StreakResult:
    stats: Stats
    outcome: StreakOutcome

    @property
    def changed(self) -> bool:
        return self.outcome != StreakOutcome.UNCHANGED

def evaluate_streak(stats: Stats, now: Optional[datetime] = None) -> StreakResult:
    """Compare today with the date of lastActive, ignoring time of day.

    Same day leaves stats untouched. Yesterday extends the streak by one.
    Anything else (two or more days ago, or a date in the future) resets the
    streak to 1. In both changing cases lastActive becomes now.
    """
    now = now or now_local()
    today = now.date()
    last = date_part(stats.last_active, tz=now.tzinfo)

    if today == last:
        return StreakResult(stats, StreakOutcome.UNCHANGED)

    if last == today - timedelta(days=1):
        new_stats = replace(stats, streak=stats.streak + 1, last_active=now.isoformat())
        logger.info(f"🔥 Streak continued: {new_stats.streak} days")
        return StreakResult(new_stats, StreakOutcome.CONTINUED)

    new_stats = replace(stats, streak=1, last_active=now.isoformat())
    logger.info(f"🧊 Streak reset (last active {last}, today {today})")
    return StreakResult(new_stats, StreakOutcome.RESET)

__all__ = ['StreakOutcome', 'StreakResult', 'evaluate_streak']
