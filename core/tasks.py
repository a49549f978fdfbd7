#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Task Store
Task list ownership, completion edges and display ordering

Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Iterable

from core.models import (
    Task, TaskPriority, IdSequence, validate_text, validate_enum_value,
)
from core.progression import task_completion_delta
from utils.datetime_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

class TaskNotFoundError(KeyError):
    """No task with the requested id"""
    pass

@dataclass(frozen=True)
class ToggleResult:
    """The toggled task and the single XP change it earns"""
    task: Task
    xp_delta: int
    task_count_delta: int

class TaskStore:
    """Owns the task list and the weak focused-task pointer"""

    def __init__(self, tasks: Optional[Iterable[Task]] = None, focused_task_id=None,
                 ids: Optional[IdSequence] = None):
        self.tasks: List[Task] = list(tasks or [])
        self.ids = ids or IdSequence()
        self.ids.observe(task.id for task in self.tasks)
        self.focused_task_id = None
        if focused_task_id is not None and self.get(focused_task_id) is not None:
            self.focused_task_id = focused_task_id

    def get(self, task_id) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _index(self, task_id) -> int:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(task_id)

    def add(self, text: str, priority: str = TaskPriority.MEDIUM.value,
            deadline: Optional[str] = None) -> Task:
        """Append a new incomplete task"""
        text = validate_text(text, min_length=1, max_length=500, field_name="text")
        priority = validate_enum_value(str(priority).lower(), TaskPriority, "priority")

        task = Task(id=self.ids.next(), text=text, completed=False, priority=priority, deadline=deadline or None)
        self.tasks.append(task)
        logger.info(f"📝 Task added: {task.id} '{text}' ({priority})")
        return task

    def toggle(self, task_id) -> ToggleResult:
        """Flip completion; the result carries exactly one signed XP delta"""
        index = self._index(task_id)
        task = self.tasks[index]
        updated = replace(task, completed=not task.completed)
        self.tasks[index] = updated

        xp_delta, count_delta = task_completion_delta(updated.priority, updated.completed)
        return ToggleResult(task=updated, xp_delta=xp_delta, task_count_delta=count_delta)

    def remove(self, task_id) -> Task:
        index = self._index(task_id)
        task = self.tasks.pop(index)
        if self.focused_task_id == task_id:
            self.focused_task_id = None
        logger.info(f"🗑️ Task removed: {task_id}")
        return task

    def set_focus(self, task_id) -> Optional[Task]:
        """Point focus at a task, or clear it with None"""
        if task_id is None:
            self.focused_task_id = None
            return None
        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        self.focused_task_id = task_id
        return task

    @property
    def focused_task(self) -> Optional[Task]:
        if self.focused_task_id is None:
            return None
        return self.get(self.focused_task_id)

    def sorted_for_display(self) -> List[Task]:
        return sort_for_display(self.tasks)

    def pending(self) -> List[Task]:
        return [task for task in self.tasks if not task.completed]

def _deadline_key(task: Task):
    if not task.deadline:
        return (1, 0.0)
    try:
        return (0, parse_iso_datetime(task.deadline).timestamp())
    except ValueError:
        return (1, 0.0)

def sort_for_display(tasks: Iterable[Task]) -> List[Task]:
    """Incomplete first, then high -> medium -> low, then earliest deadline; no deadline last"""
    return sorted(
        tasks,
        key=lambda task: (task.completed, -task.priority_rank, _deadline_key(task)),
    )

__all__ = [
    'TaskNotFoundError',
    'ToggleResult',
    'TaskStore',
    'sort_for_display',
]
