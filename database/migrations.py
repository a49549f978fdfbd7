#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Data Migrations
One-time fixes applied per namespace, tracked with marker keys

Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Tuple

from core.models import Stats
from database.storage import KeyValueStore, scoped_key

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Migration:
    """A stats fix that runs once per namespace"""
    marker: str
    description: str
    apply: Callable[[Stats], Stats]

def _reset_task_counter(stats: Stats) -> Stats:
    # Older builds double counted completions
    return replace(stats, total_tasks_completed=0)

MIGRATIONS: List[Migration] = [
    Migration(
        marker="reset-tasks-v1",
        description="Reset the completed task counter",
        apply=_reset_task_counter,
    ),
]

def apply_migrations(store: KeyValueStore, namespace: str, stats: Stats) -> Tuple[Stats, List[str]]:
    """Run every migration whose marker is not yet stored for namespace.

    Returns the migrated stats and the markers that ran. The caller persists
    the stats; markers are written here so each fix runs at most once.
    """
    applied = []
    for migration in MIGRATIONS:
        marker_key = scoped_key(namespace, migration.marker)
        if store.load(marker_key):
            continue

        stats = migration.apply(stats)
        store.save(marker_key, True)
        applied.append(migration.marker)
        logger.info(f"🔧 Migration applied for {namespace}: {migration.description}")

    return stats, applied

__all__ = ['Migration', 'MIGRATIONS', 'apply_migrations']
