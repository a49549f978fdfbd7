#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Session
Application state owner: loads a user's containers, applies mutations,
persists them locally and hands them to the sync coordinator

Bootstrap order for an identity:
    1. load every container from the local store (malformed -> defaults)
    2. one-time data migrations
    3. remote pull (remote identities only), overwriting local containers
    4. streak evaluation, exactly once
    5. open the readiness gate (and push stats if the streak moved); after a
       failed remote pull it stays closed until retry_sync() succeeds

Version: 1.0.0
"""

import inspect
import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Set, Union

from config import config, SyncConfig
from core import challenges as challenge_tracker
from core.achievements import evaluate_achievements
from core.challenges import CheckInResult
from core.models import (
    Identity, Stats, Task, Challenge, Preferences, Subject, SubjectNote, IdSequence,
    ValidationError, default_tasks, decode_list, decode_notes, decode_focus,
)
from core.progression import XpResult, apply_xp, rank_for_level, xp_progress_percent
from core.streak import StreakResult, evaluate_streak
from core.subjects import SubjectNotebook
from core.tasks import TaskStore
from core.timer import PomodoroTimer
from database.migrations import apply_migrations
from database.storage import (
    KeyValueStore, StorageError, namespace_for, scoped_key, load_record,
)
from services.remote import RemoteStore
from services.sync import SYNCED_KEYS, SyncCoordinator
from utils.datetime_utils import now_local, parse_iso_date

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class SessionError(Exception):
    """Base session failure"""
    pass

class NotSignedInError(SessionError):
    """Operation needs an identity"""
    pass

class ConfirmationRequiredError(SessionError):
    """Destructive operation called without explicit confirmation"""
    pass

class RecordNotFoundError(SessionError, KeyError):
    pass

# ===== EVENTS =====

LEVEL_UP = "level_up"
CHALLENGE_CHECK_IN = "challenge_check_in"

@dataclass(frozen=True)
class LevelUpEvent:
    level: int
    rank: str

@dataclass(frozen=True)
class CheckInEvent:
    challenge_id: Any
    title: str
    success: bool
    xp_delta: int

# ===== STATE =====

@dataclass
class AppState:
    """Every per-user container"""
    identity: Optional[Identity] = None
    tasks: TaskStore = field(default_factory=TaskStore)
    stats: Stats = field(default_factory=Stats)
    notes: Dict[str, str] = field(default_factory=dict)
    subjects: SubjectNotebook = field(default_factory=SubjectNotebook)
    challenges: List[Challenge] = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)

    @property
    def focused_task_id(self):
        return self.tasks.focused_task_id

    def container_value(self, name: str) -> Any:
        """JSON value of a container as stored locally and remotely"""
        if name == "tasks":
            return [task.to_dict() for task in self.tasks.tasks]
        if name == "stats":
            return self.stats.to_dict()
        if name == "notes":
            return dict(self.notes)
        if name == "subjects":
            return [subject.to_dict() for subject in self.subjects.subjects]
        if name == "challenges":
            return [challenge.to_dict() for challenge in self.challenges]
        if name == "preferences":
            return self.preferences.to_dict()
        if name == "focus":
            return self.tasks.focused_task_id
        raise KeyError(name)

# ===== SESSION =====

class StudySession:
    """One signed-in user's state and the operations on it"""

    def __init__(self, store: KeyValueStore, remote: Optional[RemoteStore] = None,
                 sync_config: Optional[SyncConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or now_local
        self.ids = IdSequence(self.clock)
        self.state = AppState()
        self.namespace = namespace_for(None)
        self.sync = SyncCoordinator(remote, self.state_value, sync_config)
        self.timer = PomodoroTimer(preferences_provider=lambda: self.state.preferences)
        self.last_streak: Optional[StreakResult] = None
        self._listeners: Dict[str, List[Callable]] = {LEVEL_UP: [], CHALLENGE_CHECK_IN: []}
        self._listener_tasks: Set[asyncio.Task] = set()

    # ===== PROPERTIES =====

    @property
    def identity(self) -> Optional[Identity]:
        return self.state.identity

    @property
    def is_signed_in(self) -> bool:
        return self.state.identity is not None

    def state_value(self, name: str) -> Any:
        return self.state.container_value(name)

    def today(self) -> date:
        return self.clock().date()

    def _require_identity(self) -> Identity:
        if self.state.identity is None:
            raise NotSignedInError("Please sign in first")
        return self.state.identity

    # ===== EVENTS =====

    def on(self, event: str, listener: Callable) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)

    def _emit(self, event: str, payload: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._listener_tasks.add(task)
                    task.add_done_callback(lambda t, event=event: self._listener_done(event, t))
            except Exception as e:
                logger.error(f"❌ Listener for {event} failed: {e}")

    def _listener_done(self, event: str, task: asyncio.Task) -> None:
        self._listener_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ Listener for {event} failed: {error}")

    async def _drain_listeners(self) -> None:
        if self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)

    # ===== BOOTSTRAP =====

    def _load_local(self, namespace: str) -> AppState:
        store = self.store

        def key(name):
            return scoped_key(namespace, name)

        tasks = load_record(store, key("tasks"), lambda v: decode_list(v, Task.from_dict, "tasks"),
                            lambda: default_tasks(self.clock()))
        stats = load_record(store, key("stats"), Stats.from_dict,
                            lambda: Stats(last_active=self.clock().isoformat()))
        notes = load_record(store, key("notes"), decode_notes, dict)
        subjects = load_record(store, key("subjects"), lambda v: decode_list(v, Subject.from_dict, "subjects"), list)
        challenges = load_record(store, key("challenges"),
                                 lambda v: decode_list(v, Challenge.from_dict, "challenges"), list)
        preferences = load_record(store, key("preferences"), Preferences.from_dict, Preferences)
        focus = load_record(store, key("focus"), decode_focus, lambda: None)
        self.ids.observe(challenge.id for challenge in challenges)

        return AppState(
            tasks=TaskStore(tasks, focused_task_id=focus, ids=self.ids),
            stats=stats,
            notes=notes,
            subjects=SubjectNotebook(subjects, ids=self.ids, clock=self.clock),
            challenges=challenges,
            preferences=preferences,
        )

    def _apply_remote(self, rows: Dict[str, Any]) -> List[str]:
        """Overwrite local containers with the remote values that decode cleanly"""
        decoders = {
            "tasks": lambda v: decode_list(v, Task.from_dict, "tasks"),
            "stats": Stats.from_dict,
            "notes": decode_notes,
            "subjects": lambda v: decode_list(v, Subject.from_dict, "subjects"),
            "challenges": lambda v: decode_list(v, Challenge.from_dict, "challenges"),
            "preferences": Preferences.from_dict,
        }
        applied = []
        for name, raw in rows.items():
            try:
                value = decoders[name](raw)
            except (ValidationError, TypeError, ValueError, KeyError) as e:
                logger.warning(f"⚠️ Remote value for '{name}' is malformed, keeping local copy: {e}")
                continue

            if name == "tasks":
                self.state.tasks = TaskStore(value, focused_task_id=self.state.tasks.focused_task_id, ids=self.ids)
            elif name == "subjects":
                self.state.subjects = SubjectNotebook(value, ids=self.ids, clock=self.clock)
            else:
                if name == "challenges":
                    self.ids.observe(challenge.id for challenge in value)
                setattr(self.state, name, value)
            self._write_local(name)
            applied.append(name)
        return applied

    async def start(self, identity: Identity) -> StreakResult:
        """Resolve an identity into a ready session"""
        if self.is_signed_in:
            await self.sync.close()

        self.namespace = namespace_for(identity)
        logger.info(f"🚀 Starting session for {identity.label} ({self.namespace})")

        self.state = self._load_local(self.namespace)
        self.state.identity = identity
        self._save_identity(identity)

        stats, migrated = apply_migrations(self.store, self.namespace, self.state.stats)
        if migrated:
            self.state.stats = stats
            self._write_local("stats")

        rows = await self.sync.load(identity)
        if rows:
            self._apply_remote(rows)

        streak = evaluate_streak(self.state.stats, self.clock())
        self.last_streak = streak
        if streak.changed:
            self.state.stats = streak.stats
            self._write_local("stats")

        self.sync.open_gate()
        if streak.changed:
            self.sync.schedule_push("stats")

        logger.info(f"✅ Session ready: level {self.state.stats.level}, streak {self.state.stats.streak}")
        return streak

    async def retry_sync(self) -> bool:
        """Pull the remote state again after a failed load; opens the gate on success"""
        identity = self._require_identity()
        if self.sync.ready:
            return True

        rows = await self.sync.load(identity)
        if rows:
            self._apply_remote(rows)
        return self.sync.open_gate()

    async def restore(self, identity_validator: Optional[Callable] = None) -> Optional[Identity]:
        """Start a session for the identity saved by a previous run, if any.

        identity_validator re-checks remote identities (e.g. against the auth
        backend) and returns the identity to use, or None to discard it.
        """
        raw = self.store.load(config.storage.identity_key)
        if raw is None:
            return None
        try:
            identity = Identity.from_dict(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Stored identity is malformed, ignoring: {e}")
            return None

        if identity.is_remote and identity_validator is not None:
            identity = await identity_validator()
            if identity is None:
                logger.info("🔒 Stored remote identity is no longer valid")
                self.store.delete(config.storage.identity_key)
                return None

        await self.start(identity)
        return identity

    def _save_identity(self, identity: Identity) -> None:
        try:
            self.store.save(config.storage.identity_key, identity.to_dict())
        except StorageError as e:
            logger.error(f"❌ Could not persist identity: {e}")

    # ===== PERSISTENCE =====

    def _write_local(self, name: str) -> None:
        try:
            self.store.save(scoped_key(self.namespace, name), self.state.container_value(name))
        except StorageError as e:
            logger.error(f"❌ Local write of '{name}' failed: {e}")

    def _commit(self, *names: str) -> None:
        """Persist containers locally and schedule their upstream push"""
        for name in names:
            self._write_local(name)
            if name in SYNCED_KEYS:
                self.sync.schedule_push(name)

    # ===== PROGRESSION =====

    def add_xp(self, amount: Union[int, float], task_count_delta: int = 0) -> XpResult:
        self._require_identity()
        result = apply_xp(self.state.stats, amount, task_count_delta)
        self.state.stats = result.stats
        self._commit("stats")

        if result.leveled_up:
            level = result.stats.level
            logger.info(f"🎉 Level up! Now level {level}")
            self._emit(LEVEL_UP, LevelUpEvent(level=level, rank=rank_for_level(level)))
        return result

    def progress_summary(self) -> Dict[str, Any]:
        stats = self.state.stats
        data = stats.to_dict()
        data.update({
            "rank": rank_for_level(stats.level),
            "xpPercent": xp_progress_percent(stats),
        })
        return data

    def achievements(self) -> Dict[str, List[Dict[str, Any]]]:
        result = evaluate_achievements(self.state.stats)
        return {group: [status.to_dict() for status in items] for group, items in result.items()}

    # ===== TASKS =====

    def add_task(self, text: str, priority: str = "medium", deadline: Optional[str] = None) -> Task:
        self._require_identity()
        task = self.state.tasks.add(text, priority, deadline)
        self._commit("tasks")
        return task

    def toggle_task(self, task_id) -> Task:
        """Flip completion and apply its XP change exactly once"""
        self._require_identity()
        toggled = self.state.tasks.toggle(task_id)
        self._commit("tasks")
        self.add_xp(toggled.xp_delta, toggled.task_count_delta)
        return toggled.task

    def remove_task(self, task_id) -> Task:
        self._require_identity()
        had_focus = self.state.tasks.focused_task_id == task_id
        task = self.state.tasks.remove(task_id)
        self._commit("tasks", *(["focus"] if had_focus else []))
        return task

    def set_focused_task(self, task_id) -> Optional[Task]:
        self._require_identity()
        task = self.state.tasks.set_focus(task_id)
        self._commit("focus")
        return task

    def sorted_tasks(self) -> List[Task]:
        return self.state.tasks.sorted_for_display()

    # ===== CHALLENGES =====

    def _challenge_index(self, challenge_id) -> int:
        for index, challenge in enumerate(self.state.challenges):
            if challenge.id == challenge_id:
                return index
        raise RecordNotFoundError(f"Challenge {challenge_id} not found")

    def create_challenge(self, title: str, duration: int = challenge_tracker.DEFAULT_DURATION,
                         start_date: Optional[Union[date, str]] = None) -> Challenge:
        self._require_identity()
        challenge = challenge_tracker.create(title, duration, start_date or self.today(), ids=self.ids)
        self.state.challenges = self.state.challenges + [challenge]
        self._commit("challenges")
        return challenge

    def check_in(self, challenge_id, success: bool) -> CheckInResult:
        """Record today's outcome; XP changes only when the check-in was applied"""
        self._require_identity()
        index = self._challenge_index(challenge_id)
        today = self.today()

        result = challenge_tracker.check_in(self.state.challenges[index], today, success)
        if not result.applied:
            logger.debug(f"Check-in for {challenge_id} ignored (already checked in or not started)")
            return result

        updated = challenge_tracker.refresh_status(result.challenge, today)
        challenges = list(self.state.challenges)
        challenges[index] = updated
        self.state.challenges = challenges
        self._commit("challenges")

        self.add_xp(result.xp_delta)
        self._emit(CHALLENGE_CHECK_IN, CheckInEvent(
            challenge_id=updated.id,
            title=updated.title,
            success=result.success,
            xp_delta=result.xp_delta,
        ))
        return replace(result, challenge=updated)

    def delete_challenge(self, challenge_id) -> Challenge:
        self._require_identity()
        challenge = self.state.challenges[self._challenge_index(challenge_id)]
        self.state.challenges = challenge_tracker.delete(self.state.challenges, challenge_id)
        self._commit("challenges")
        logger.info(f"🗑️ Challenge deleted: '{challenge.title}'")
        return challenge

    def challenge_summaries(self) -> List[Dict[str, Any]]:
        today = self.today()
        return [challenge_tracker.summary(c, today) for c in self.state.challenges]

    # ===== NOTES & SUBJECTS =====

    def update_note(self, date_str: str, content: str) -> Dict[str, str]:
        """Overwrite the note for one calendar day"""
        self._require_identity()
        try:
            day = parse_iso_date(date_str)
        except ValueError:
            raise ValidationError(f"Invalid date: {date_str}")
        if day is None:
            raise ValidationError("date is required")
        if not isinstance(content, str):
            raise ValidationError("content must be a string")

        self.state.notes = {**self.state.notes, day.isoformat(): content}
        self._commit("notes")
        return self.state.notes

    def create_subject(self, name: str, color: Optional[str] = None) -> Subject:
        self._require_identity()
        subject = self.state.subjects.create_subject(name, color) if color else self.state.subjects.create_subject(name)
        self._commit("subjects")
        return subject

    def delete_subject(self, subject_id) -> Subject:
        self._require_identity()
        subject = self.state.subjects.delete_subject(subject_id)
        self._commit("subjects")
        return subject

    def save_subject_note(self, subject_id, title: str, content: str = "", note_id=None) -> SubjectNote:
        self._require_identity()
        note = self.state.subjects.save_note(subject_id, title, content, note_id)
        self._commit("subjects")
        return note

    def delete_subject_note(self, subject_id, note_id) -> SubjectNote:
        self._require_identity()
        note = self.state.subjects.delete_note(subject_id, note_id)
        self._commit("subjects")
        return note

    def search_subjects(self, query: str) -> List[Subject]:
        return self.state.subjects.search(query)

    # ===== PREFERENCES =====

    def update_preferences(self, changes: Dict[str, Any]) -> Preferences:
        self._require_identity()
        self.state.preferences = self.state.preferences.updated(changes)
        self._commit("preferences")
        return self.state.preferences

    # ===== DESTRUCTIVE =====

    def reset_data(self, confirm: bool = False) -> None:
        """Wipe tasks, stats, notes, subjects, challenges and focus. Identity and preferences stay."""
        self._require_identity()
        if confirm is not True:
            raise ConfirmationRequiredError("Resetting wipes all your data; confirm to continue")

        self.state.tasks = TaskStore(ids=self.ids)
        self.state.stats = Stats.reset(self.clock())
        self.state.notes = {}
        self.state.subjects = SubjectNotebook(ids=self.ids, clock=self.clock)
        self.state.challenges = []
        self._commit("tasks", "stats", "notes", "subjects", "challenges", "focus")
        logger.warning(f"🧨 All data reset for {self.namespace}")

    async def logout(self, auth=None) -> None:
        """Drop the identity; pending pushes are cancelled (or flushed if configured)"""
        identity = self.state.identity
        await self.sync.close()
        await self.timer.cleanup()
        self.timer.reset()

        try:
            if identity is not None and identity.is_remote and auth is not None:
                await auth.sign_out()
        finally:
            try:
                self.store.delete(config.storage.identity_key)
            except OSError as e:
                logger.error(f"❌ Could not clear stored identity: {e}")

            self.state = AppState()
            self.namespace = namespace_for(None)
            logger.info(f"👋 Logged out{f' {identity.label}' if identity else ''}")

    async def close(self) -> None:
        """Process shutdown"""
        await self.sync.close()
        await self.timer.cleanup()
        await self._drain_listeners()

    # ===== SNAPSHOT =====

    def snapshot(self) -> Dict[str, Any]:
        state = self.state
        return {
            "identity": state.identity.to_dict() if state.identity else None,
            "tasks": [task.to_dict() for task in self.sorted_tasks()],
            "focusedTaskId": state.tasks.focused_task_id,
            "stats": self.progress_summary(),
            "notes": dict(state.notes),
            "subjects": [subject.to_dict() for subject in state.subjects.subjects],
            "challenges": self.challenge_summaries(),
            "preferences": state.preferences.to_dict(),
            "timer": self.timer.to_dict(),
            "sync": self.sync.to_dict(),
        }

__all__ = [
    'SessionError',
    'NotSignedInError',
    'ConfirmationRequiredError',
    'RecordNotFoundError',
    'LEVEL_UP',
    'CHALLENGE_CHECK_IN',
    'LevelUpEvent',
    'CheckInEvent',
    'AppState',
    'StudySession',
]
