#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Progression Engine
XP accrual, level promotion and rank titles

Version: 1.0.0
"""

import math
import logging
from dataclasses import dataclass, replace
from typing import Tuple, Union

from core.models import Stats, TaskPriority

logger = logging.getLogger(__name__)

# ===== CONSTANTS =====

LEVEL_GROWTH_FACTOR = 1.5

TASK_XP_REWARDS = {
    TaskPriority.HIGH.value: 30,
    TaskPriority.MEDIUM.value: 20,
    TaskPriority.LOW.value: 10,
}
DEFAULT_TASK_XP = 20

# (minimum level, title), highest first
RANK_TITLES = [
    (50, "Time Lord"),
    (30, "Grandmaster"),
    (20, "Master of Focus"),
    (10, "Adept Scholar"),
    (5, "Apprentice"),
    (1, "Novice"),
]

# ===== RESULT =====

@dataclass(frozen=True)
class XpResult:
    """Outcome of applying an XP delta"""
    stats: Stats
    leveled_up: bool = False

    @property
    def level(self) -> int:
        return self.stats.level

# ===== ENGINE =====

def apply_xp(stats: Stats, delta: Union[int, float], task_count_delta: int = 0) -> XpResult:
    """Apply an XP delta and a task counter delta.

    XP never goes below zero. Reaching maxXp promotes exactly one level per
    call: the threshold is subtracted and maxXp grows by 1.5x (floored).
    A delta large enough to cross two thresholds still promotes only once.
    """
    xp = max(0, stats.xp + delta)
    level = stats.level
    max_xp = stats.max_xp
    leveled_up = False

    if xp >= max_xp:
        level += 1
        xp -= max_xp
        max_xp = math.floor(max_xp * LEVEL_GROWTH_FACTOR)
        leveled_up = True

    new_stats = replace(
        stats,
        level=level,
        xp=xp,
        max_xp=max_xp,
        total_tasks_completed=max(0, stats.total_tasks_completed + task_count_delta),
    )

    if leveled_up:
        logger.debug(f"🎉 Level up: {stats.level} -> {level} (next threshold {max_xp})")

    return XpResult(stats=new_stats, leveled_up=leveled_up)

def task_xp_reward(priority: str) -> int:
    """XP earned for completing a task of the given priority"""
    return TASK_XP_REWARDS.get(priority, DEFAULT_TASK_XP)

def task_completion_delta(priority: str, completed: bool) -> Tuple[int, int]:
    """(xp_delta, task_count_delta) for a completion edge.

    completed=True is the incomplete -> complete edge, False the reverse.
    """
    amount = task_xp_reward(priority)
    if completed:
        return amount, 1
    return -amount, -1

def rank_for_level(level: int) -> str:
    for minimum, title in RANK_TITLES:
        if level >= minimum:
            return title
    return RANK_TITLES[-1][1]

def xp_progress_percent(stats: Stats) -> float:
    """Progress towards the next level, 0-100"""
    return round(stats.xp_percent, 2)

# ===== EXPORT =====

__all__ = [
    'XpResult',
    'apply_xp',
    'task_xp_reward',
    'task_completion_delta',
    'rank_for_level',
    'xp_progress_percent',
    'TASK_XP_REWARDS',
    'DEFAULT_TASK_XP',
    'LEVEL_GROWTH_FACTOR',
    'RANK_TITLES',
]
