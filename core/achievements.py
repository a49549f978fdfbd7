#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Achievements
Read-only badges derived from progression stats

Version: 1.0.0
"""

from typing import Dict, List, Optional, Any, Callable, Tuple
from dataclasses import dataclass
from enum import Enum
from abc import ABC, abstractmethod
import logging

from core.models import Stats
from utils.datetime_utils import parse_iso_datetime, local_tz

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class AchievementCategory(Enum):
    """Achievement categories"""
    LEVELS = "levels"
    STREAKS = "streaks"
    TASKS = "tasks"
    HABITS = "habits"

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class AchievementDefinition:
    """A badge and how it is presented"""
    achievement_id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.achievement_id,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'category': self.category.value,
        }

@dataclass(frozen=True)
class AchievementStatus:
    definition: AchievementDefinition
    unlocked: bool
    current: int
    target: int

    @property
    def progress_percentage(self) -> float:
        if self.target == 0:
            return 100.0
        return min(100.0, (self.current / self.target) * 100)

    def to_dict(self) -> Dict[str, Any]:
        data = self.definition.to_dict()
        data.update({
            'unlocked': self.unlocked,
            'progress': {'current': self.current, 'target': self.target},
        })
        return data

# ===== CHECKERS =====

class AchievementChecker(ABC):
    """Decides whether stats unlock an achievement"""

    @abstractmethod
    def check(self, stats: Stats) -> bool:
        pass

    @abstractmethod
    def get_progress(self, stats: Stats) -> Tuple[int, int]:
        """(current, target)"""
        pass

class ThresholdChecker(AchievementChecker):
    """Unlocked once a stat reaches a target value"""

    def __init__(self, target: int, value_getter: Callable[[Stats], int]):
        self.target = target
        self.value_getter = value_getter

    def check(self, stats: Stats) -> bool:
        return self.value_getter(stats) >= self.target

    def get_progress(self, stats: Stats) -> Tuple[int, int]:
        return min(self.target, self.value_getter(stats)), self.target

class ActiveHourChecker(AchievementChecker):
    """Unlocked when lastActive falls inside an hour window (local time).

    start > end means the window wraps past midnight.
    """

    def __init__(self, start_hour: int, end_hour: int):
        self.start_hour = start_hour
        self.end_hour = end_hour

    def _hour(self, stats: Stats) -> Optional[int]:
        try:
            return parse_iso_datetime(stats.last_active).astimezone(local_tz()).hour
        except ValueError:
            return None

    def check(self, stats: Stats) -> bool:
        hour = self._hour(stats)
        if hour is None:
            return False
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour

    def get_progress(self, stats: Stats) -> Tuple[int, int]:
        return (1 if self.check(stats) else 0), 1

# ===== REGISTRY =====

class AchievementRegistry:
    """All known achievements in display order"""

    def __init__(self):
        self.achievements: Dict[str, AchievementDefinition] = {}
        self.checkers: Dict[str, AchievementChecker] = {}
        self._load_default_achievements()

    def register_achievement(self, definition: AchievementDefinition, checker: AchievementChecker) -> None:
        self.achievements[definition.achievement_id] = definition
        self.checkers[definition.achievement_id] = checker
        logger.debug(f"Registered achievement: {definition.achievement_id}")

    def get_achievement(self, achievement_id: str) -> Optional[AchievementDefinition]:
        return self.achievements.get(achievement_id)

    def get_all_achievements(self) -> List[AchievementDefinition]:
        return list(self.achievements.values())

    def _load_default_achievements(self):
        level = lambda s: s.level
        streak = lambda s: s.streak
        tasks_done = lambda s: s.total_tasks_completed

        defaults = [
            ("first-steps", "First Steps", "Reach Level 2", "🎯",
             AchievementCategory.LEVELS, ThresholdChecker(2, level)),
            ("on-fire", "On Fire", "Reach a 3-day streak", "⚡",
             AchievementCategory.STREAKS, ThresholdChecker(3, streak)),
            ("task-master", "Task Master", "Complete 10 tasks", "🏆",
             AchievementCategory.TASKS, ThresholdChecker(10, tasks_done)),
            ("scholar", "Scholar", "Reach Level 5", "⭐",
             AchievementCategory.LEVELS, ThresholdChecker(5, level)),
            ("unstoppable", "Unstoppable", "Reach a 7-day streak", "📈",
             AchievementCategory.STREAKS, ThresholdChecker(7, streak)),
            ("grandmaster", "Grandmaster", "Reach Level 10", "🎯",
             AchievementCategory.LEVELS, ThresholdChecker(10, level)),
            ("night-owl", "Night Owl", "Active after 10 PM", "🦉",
             AchievementCategory.HABITS, ActiveHourChecker(22, 4)),
            ("early-bird", "Early Bird", "Active before 7 AM", "🐦",
             AchievementCategory.HABITS, ActiveHourChecker(4, 7)),
            ("completionist", "Completionist", "Complete 50 tasks", "🏆",
             AchievementCategory.TASKS, ThresholdChecker(50, tasks_done)),
            ("legend", "Legend", "Reach Level 20", "👑",
             AchievementCategory.LEVELS, ThresholdChecker(20, level)),
        ]

        for achievement_id, title, description, icon, category, checker in defaults:
            self.register_achievement(
                AchievementDefinition(
                    achievement_id=achievement_id,
                    title=title,
                    description=description,
                    icon=icon,
                    category=category,
                ),
                checker,
            )

    def evaluate(self, stats: Stats) -> List[AchievementStatus]:
        statuses = []
        for achievement_id, definition in self.achievements.items():
            checker = self.checkers[achievement_id]
            current, target = checker.get_progress(stats)
            statuses.append(AchievementStatus(
                definition=definition,
                unlocked=checker.check(stats),
                current=current,
                target=target,
            ))
        return statuses

# Global registry instance
achievement_registry = AchievementRegistry()

def evaluate_achievements(stats: Stats) -> Dict[str, List[AchievementStatus]]:
    """Split all achievements into unlocked and locked for the given stats"""
    statuses = achievement_registry.evaluate(stats)
    return {
        'unlocked': [s for s in statuses if s.unlocked],
        'locked': [s for s in statuses if not s.unlocked],
    }

__all__ = [
    'AchievementCategory',
    'AchievementDefinition',
    'AchievementStatus',
    'AchievementChecker',
    'ThresholdChecker',
    'ActiveHourChecker',
    'AchievementRegistry',
    'achievement_registry',
    'evaluate_achievements',
]
