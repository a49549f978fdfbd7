#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Core Data Models
Typed records for every persisted container, with validated decoding

Version: 1.0.0
"""

from datetime import datetime, date, timedelta
from typing import Dict, List, Optional, Union, Any, Callable
from dataclasses import dataclass, field
from enum import Enum
import logging

from utils.datetime_utils import now_iso, now_local

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class TaskPriority(Enum):
    """Task priorities"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class AuthType(Enum):
    """Kinds of identity"""
    LOCAL = "local"
    REMOTE = "remote"

class ChallengeStatus(Enum):
    """Challenge lifecycle"""
    ACTIVE = "active"
    COMPLETED = "completed"

# ===== CONSTANTS =====

DEFAULT_MAX_XP = 500
RESET_MAX_XP = 100

DEFAULT_SUBJECT_COLOR = "from-blue-500 to-indigo-500"
SUBJECT_COLORS = [
    "from-blue-500 to-indigo-500",
    "from-purple-500 to-pink-500",
    "from-emerald-500 to-teal-500",
    "from-orange-500 to-red-500",
    "from-cyan-500 to-blue-500",
    "from-rose-500 to-orange-500",
]

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Invalid or malformed data"""
    pass

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Validate and strip a text field"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} must contain at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must contain at most {max_length} characters")

    return text

def validate_enum_value(value: str, enum_class: type, field_name: str = "value") -> str:
    """Validate that value belongs to an enum"""
    try:
        enum_class(value)
        return value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}")

def _require_int(value: Any, field_name: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return value

def _require_number(value: Any, field_name: str, minimum: Optional[float] = None,
                    strictly_positive: bool = False) -> Union[int, float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    if strictly_positive and value <= 0:
        raise ValidationError(f"{field_name} must be > 0")
    return value

def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean")
    return value

def _require_iso_date(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO date string")
    try:
        date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"Invalid date format for {field_name}: {value}")
    return value[:10]

def _require_iso_datetime(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO datetime string")
    try:
        datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"Invalid datetime format for {field_name}: {value}")
    return value

def _require_dict(data: Any, record: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{record} must be an object, got {type(data).__name__}")
    return data

def _require_id(value: Any, field_name: str = "id") -> Union[int, str]:
    if isinstance(value, bool) or not isinstance(value, (int, str)) or value == "":
        raise ValidationError(f"{field_name} must be a number or a non-empty string")
    return value

# ===== IDENTITY =====

@dataclass
class Identity:
    """Signed-in user. Owned by the session only."""
    id: str
    auth_type: str = AuthType.LOCAL.value
    display_name: Optional[str] = None
    email: Optional[str] = None
    joined_at: Optional[str] = None

    def __post_init__(self):
        self.id = validate_text(str(self.id), min_length=1, max_length=200, field_name="id")
        self.auth_type = validate_enum_value(self.auth_type, AuthType, "authType")

    @property
    def is_remote(self) -> bool:
        return self.auth_type == AuthType.REMOTE.value

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "authType": self.auth_type,
            "displayName": self.display_name,
            "email": self.email,
            "joinedAt": self.joined_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        data = _require_dict(data, "identity")
        auth_type = data.get("authType", AuthType.LOCAL.value)
        # Identities written by older builds used "manual" for name-only logins
        if auth_type == "manual":
            auth_type = AuthType.LOCAL.value
        if "id" not in data:
            raise ValidationError("identity.id is required")
        return cls(
            id=data["id"],
            auth_type=auth_type,
            display_name=data.get("displayName") or data.get("name"),
            email=data.get("email"),
            joined_at=data.get("joinedAt"),
        )

    @classmethod
    def create_local(cls, name: str, now: Optional[datetime] = None) -> "Identity":
        """Name-only identity that never touches the remote backend"""
        now = now or now_local()
        name = validate_text(name, min_length=1, max_length=100, field_name="name")
        return cls(
            id=f"user_{int(now.timestamp() * 1000)}",
            auth_type=AuthType.LOCAL.value,
            display_name=name,
            joined_at=now.isoformat(),
        )

    @classmethod
    def from_remote_user(cls, user: Dict[str, Any]) -> "Identity":
        """Map an auth backend user ({id, email, created_at}) to an identity"""
        user = _require_dict(user, "user")
        if not user.get("id"):
            raise ValidationError("Remote user has no id")
        email = user.get("email")
        return cls(
            id=str(user["id"]),
            auth_type=AuthType.REMOTE.value,
            display_name=email.split("@")[0] if email else None,
            email=email,
            joined_at=user.get("created_at"),
        )

# ===== STATS =====

@dataclass
class Stats:
    """Progression state: level, xp, streak and counters"""
    level: int = 1
    xp: Union[int, float] = 0
    max_xp: Union[int, float] = DEFAULT_MAX_XP
    streak: int = 1
    last_active: str = field(default_factory=now_iso)
    total_tasks_completed: int = 0

    def __post_init__(self):
        _require_int(self.level, "level", minimum=1)
        _require_number(self.xp, "xp", minimum=0)
        _require_number(self.max_xp, "maxXp", strictly_positive=True)
        _require_int(self.streak, "streak", minimum=1)
        _require_iso_datetime(self.last_active, "lastActive")
        _require_int(self.total_tasks_completed, "totalTasksCompleted", minimum=0)

    @property
    def xp_percent(self) -> float:
        return min(100.0, (self.xp / self.max_xp) * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "maxXp": self.max_xp,
            "streak": self.streak,
            "lastActive": self.last_active,
            "totalTasksCompleted": self.total_tasks_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stats":
        data = _require_dict(data, "stats")
        defaults = cls()
        return cls(
            level=data.get("level", defaults.level),
            xp=data.get("xp", defaults.xp),
            max_xp=data.get("maxXp", defaults.max_xp),
            streak=data.get("streak", defaults.streak),
            last_active=data.get("lastActive", defaults.last_active),
            total_tasks_completed=data.get("totalTasksCompleted", defaults.total_tasks_completed),
        )

    @classmethod
    def reset(cls, now: Optional[datetime] = None) -> "Stats":
        """Stats after an explicit data wipe"""
        return cls(max_xp=RESET_MAX_XP, last_active=(now or now_local()).isoformat())

# ===== TASKS =====

@dataclass
class Task:
    """A to-do item; completing it earns XP"""
    id: Union[int, str]
    text: str
    completed: bool = False
    priority: str = TaskPriority.MEDIUM.value
    deadline: Optional[str] = None

    def __post_init__(self):
        _require_id(self.id)
        self.text = validate_text(self.text, min_length=1, max_length=500, field_name="text")
        _require_bool(self.completed, "completed")
        if not isinstance(self.priority, str):
            raise ValidationError("priority must be a string")
        if self.deadline is not None:
            _require_iso_datetime(self.deadline, "deadline")

    @property
    def priority_rank(self) -> int:
        return {
            TaskPriority.HIGH.value: 3,
            TaskPriority.MEDIUM.value: 2,
            TaskPriority.LOW.value: 1,
        }.get(self.priority, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority,
            "deadline": self.deadline,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        data = _require_dict(data, "task")
        try:
            return cls(
                id=data["id"],
                text=data["text"],
                completed=data.get("completed", False),
                priority=data.get("priority", TaskPriority.MEDIUM.value),
                deadline=data.get("deadline"),
            )
        except KeyError as e:
            raise ValidationError(f"task is missing field {e}")

def default_tasks(now: Optional[datetime] = None) -> List[Task]:
    """Sample tasks shown to a brand new user"""
    now = now or now_local()
    return [
        Task(id=1, text="Complete React Component", priority=TaskPriority.HIGH.value,
             deadline=(now + timedelta(days=1)).isoformat()),
        Task(id=2, text="Review Tailwind Config", completed=True, priority=TaskPriority.MEDIUM.value),
        Task(id=3, text="Plan Next Feature", priority=TaskPriority.LOW.value),
    ]

# ===== CHALLENGES =====

@dataclass
class CheckInRecord:
    """One day's self-report for a challenge"""
    date: str
    success: bool

    def __post_init__(self):
        self.date = _require_iso_date(self.date, "history.date")
        _require_bool(self.success, "history.success")

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "success": self.success}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckInRecord":
        data = _require_dict(data, "history entry")
        if "date" not in data or "success" not in data:
            raise ValidationError("history entry needs date and success")
        return cls(date=data["date"], success=data["success"])

@dataclass
class Challenge:
    """Time-boxed daily habit challenge"""
    id: Union[int, str]
    title: str
    duration: int
    start_date: str
    completed_days: int = 0
    last_check_in: Optional[str] = None
    history: List[CheckInRecord] = field(default_factory=list)
    status: str = ChallengeStatus.ACTIVE.value

    def __post_init__(self):
        _require_id(self.id)
        self.title = validate_text(self.title, min_length=1, max_length=200, field_name="title")
        _require_int(self.duration, "duration", minimum=1)
        self.start_date = _require_iso_date(self.start_date, "startDate")
        _require_int(self.completed_days, "completedDays", minimum=0)
        if self.last_check_in is not None:
            self.last_check_in = _require_iso_date(self.last_check_in, "lastCheckIn")
        self.status = validate_enum_value(self.status, ChallengeStatus, "status")

    @property
    def start(self) -> date:
        return date.fromisoformat(self.start_date)

    def record_for(self, day: Union[date, str]) -> Optional[CheckInRecord]:
        day_str = day.isoformat() if isinstance(day, date) else day
        for record in self.history:
            if record.date == day_str:
                return record
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "startDate": self.start_date,
            "completedDays": self.completed_days,
            "lastCheckIn": self.last_check_in,
            "history": [record.to_dict() for record in self.history],
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Challenge":
        data = _require_dict(data, "challenge")
        try:
            history = [CheckInRecord.from_dict(h) for h in (data.get("history") or [])]
            return cls(
                id=data["id"],
                title=data["title"],
                duration=data["duration"],
                start_date=data["startDate"],
                completed_days=data.get("completedDays", 0),
                last_check_in=data.get("lastCheckIn"),
                history=history,
                status=data.get("status", ChallengeStatus.ACTIVE.value),
            )
        except KeyError as e:
            raise ValidationError(f"challenge is missing field {e}")

# ===== PREFERENCES =====

@dataclass
class Preferences:
    """UI/notification preferences"""
    dark_mode: bool = True
    notifications: bool = True
    sound: bool = True

    FIELD_MAP = {
        "darkMode": "dark_mode",
        "notifications": "notifications",
        "sound": "sound",
    }

    def __post_init__(self):
        _require_bool(self.dark_mode, "darkMode")
        _require_bool(self.notifications, "notifications")
        _require_bool(self.sound, "sound")

    def updated(self, changes: Dict[str, Any]) -> "Preferences":
        """Copy with the given camelCase fields replaced"""
        values = self.to_dict()
        for key, value in changes.items():
            if key not in self.FIELD_MAP:
                raise ValidationError(f"Unknown preference: {key}")
            values[key] = value
        return Preferences.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return {"darkMode": self.dark_mode, "notifications": self.notifications, "sound": self.sound}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        data = _require_dict(data, "preferences")
        return cls(
            dark_mode=data.get("darkMode", True),
            notifications=data.get("notifications", True),
            sound=data.get("sound", True),
        )

# ===== SUBJECTS =====

@dataclass
class SubjectNote:
    """A titled note inside a subject notebook"""
    id: Union[int, str]
    title: str
    content: str = ""
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def __post_init__(self):
        _require_id(self.id)
        self.title = validate_text(self.title, min_length=1, max_length=200, field_name="title")
        if not isinstance(self.content, str):
            raise ValidationError("content must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectNote":
        data = _require_dict(data, "subject note")
        try:
            return cls(
                id=data["id"],
                title=data["title"],
                content=data.get("content", ""),
                created_at=data.get("createdAt") or now_iso(),
                updated_at=data.get("updatedAt") or data.get("createdAt") or now_iso(),
            )
        except KeyError as e:
            raise ValidationError(f"subject note is missing field {e}")

@dataclass
class Subject:
    """Notebook grouping notes for one study subject"""
    id: Union[int, str]
    name: str
    color: str = DEFAULT_SUBJECT_COLOR
    notes: List[SubjectNote] = field(default_factory=list)
    tasks: List[Any] = field(default_factory=list)

    def __post_init__(self):
        _require_id(self.id)
        self.name = validate_text(self.name, min_length=1, max_length=100, field_name="name")
        if not isinstance(self.color, str):
            raise ValidationError("color must be a string")

    def get_note(self, note_id: Union[int, str]) -> Optional[SubjectNote]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "notes": [note.to_dict() for note in self.notes],
            "tasks": list(self.tasks),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        data = _require_dict(data, "subject")
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                color=data.get("color", DEFAULT_SUBJECT_COLOR),
                notes=[SubjectNote.from_dict(n) for n in (data.get("notes") or [])],
                tasks=list(data.get("tasks") or []),
            )
        except KeyError as e:
            raise ValidationError(f"subject is missing field {e}")

# ===== IDS =====

class IdSequence:
    """Time-based record ids (epoch milliseconds) that never repeat or go backwards"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or now_local
        self._last = 0

    def observe(self, existing_ids) -> None:
        """Make sure future ids are above every numeric id already in use"""
        for value in existing_ids:
            if isinstance(value, int) and not isinstance(value, bool) and value > self._last:
                self._last = value

    def next(self) -> int:
        candidate = int(self._clock().timestamp() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate

# ===== CONTAINER CODECS =====

def decode_list(data: Any, decoder: Callable[[Dict[str, Any]], Any], name: str) -> List[Any]:
    """Decode a JSON array of records; any bad element rejects the whole list"""
    if not isinstance(data, list):
        raise ValidationError(f"{name} must be a list")
    return [decoder(item) for item in data]

def decode_notes(data: Any) -> Dict[str, str]:
    """Daily notes: {YYYY-MM-DD: text}"""
    data = _require_dict(data, "notes")
    notes = {}
    for key, value in data.items():
        _require_iso_date(key, "notes key")
        if not isinstance(value, str):
            raise ValidationError(f"note for {key} must be a string")
        notes[key] = value
    return notes

def decode_focus(data: Any) -> Optional[Union[int, str]]:
    if data is None:
        return None
    return _require_id(data, "focus")

# ===== EXPORT =====

__all__ = [
    'TaskPriority',
    'AuthType',
    'ChallengeStatus',
    'ValidationError',
    'validate_text',
    'validate_enum_value',
    'Identity',
    'Stats',
    'Task',
    'CheckInRecord',
    'Challenge',
    'Preferences',
    'SubjectNote',
    'Subject',
    'default_tasks',
    'IdSequence',
    'decode_list',
    'decode_notes',
    'decode_focus',
    'DEFAULT_MAX_XP',
    'RESET_MAX_XP',
    'DEFAULT_SUBJECT_COLOR',
    'SUBJECT_COLORS',
]
