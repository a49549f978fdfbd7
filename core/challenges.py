#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Challenge Tracker
Time-boxed daily habit challenges with once-per-day check-ins

Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Union

from core.models import (
    Challenge, ChallengeStatus, CheckInRecord, IdSequence, ValidationError,
    validate_text,
)
from utils.datetime_utils import today_local

logger = logging.getLogger(__name__)

# ===== CONSTANTS =====

CHECK_IN_REWARD = 10
CHECK_IN_PENALTY = -20
DEFAULT_DURATION = 30

class DayState(Enum):
    """State of one day in a challenge's history strip"""
    SUCCESS = "success"
    FAILED = "failed"
    MISSED = "missed"
    PENDING = "pending"

@dataclass(frozen=True)
class CheckInResult:
    """Outcome of a check-in attempt; xp_delta is 0 when nothing was applied"""
    challenge: Challenge
    applied: bool
    success: bool
    xp_delta: int = 0

@dataclass(frozen=True)
class ChallengeDay:
    index: int
    date: str
    state: DayState

    def to_dict(self):
        return {"day": self.index, "date": self.date, "state": self.state.value}

def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value

# ===== OPERATIONS =====

def create(title: str, duration: int = DEFAULT_DURATION, start_date: Optional[Union[date, str]] = None,
           ids: Optional[IdSequence] = None) -> Challenge:
    """New challenge with an empty history"""
    title = validate_text(title, min_length=1, max_length=200, field_name="title")
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
        raise ValidationError("duration must be a whole number of days >= 1")

    start = _as_date(start_date) if start_date is not None else today_local()
    ids = ids or IdSequence()

    challenge = Challenge(
        id=ids.next(),
        title=title,
        duration=duration,
        start_date=start.isoformat(),
        completed_days=0,
        last_check_in=None,
        history=[],
    )
    logger.info(f"🏁 Challenge created: '{title}' ({duration} days from {challenge.start_date})")
    return challenge

def progress(challenge: Challenge, today: Union[date, str]) -> int:
    """Elapsed day number (1-based) clamped to duration; 0 before the start"""
    today = _as_date(today)
    if today < challenge.start:
        return 0
    diff_days = (today - challenge.start).days + 1
    return min(diff_days, challenge.duration)

def can_check_in(challenge: Challenge, today: Union[date, str]) -> bool:
    today = _as_date(today)
    return challenge.last_check_in != today.isoformat() and progress(challenge, today) > 0

def check_in(challenge: Challenge, today: Union[date, str], success: bool) -> CheckInResult:
    """Record today's outcome.

    A second call on the same day (or before the start date) returns the
    challenge unchanged with applied=False. A failed day still sets
    lastCheckIn so the user is not asked again.
    """
    today = _as_date(today)
    if not can_check_in(challenge, today):
        return CheckInResult(challenge=challenge, applied=False, success=success)

    day = today.isoformat()
    history = list(challenge.history) + [CheckInRecord(date=day, success=bool(success))]

    if success:
        updated = replace(
            challenge,
            history=history,
            last_check_in=day,
            completed_days=challenge.completed_days + 1,
        )
        xp_delta = CHECK_IN_REWARD
    else:
        updated = replace(challenge, history=history, last_check_in=day)
        xp_delta = CHECK_IN_PENALTY

    logger.info(f"📅 Check-in for '{challenge.title}' on {day}: {'success' if success else 'failed'}")
    return CheckInResult(challenge=updated, applied=True, success=bool(success), xp_delta=xp_delta)

def is_complete(challenge: Challenge, today: Union[date, str]) -> bool:
    """Completion is elapsed-time based, independent of how many days succeeded"""
    return progress(challenge, today) == challenge.duration

def refresh_status(challenge: Challenge, today: Union[date, str]) -> Challenge:
    if is_complete(challenge, today) and challenge.status != ChallengeStatus.COMPLETED.value:
        return replace(challenge, status=ChallengeStatus.COMPLETED.value)
    return challenge

def delete(challenges: List[Challenge], challenge_id) -> List[Challenge]:
    """Drop a challenge together with its history"""
    return [c for c in challenges if c.id != challenge_id]

def find(challenges: List[Challenge], challenge_id) -> Optional[Challenge]:
    for challenge in challenges:
        if challenge.id == challenge_id:
            return challenge
    return None

# ===== DERIVED VIEWS =====

def percent(challenge: Challenge, today: Union[date, str]) -> float:
    current = progress(challenge, today)
    if current <= 0:
        return 0.0
    return current / challenge.duration * 100

def days_left(challenge: Challenge, today: Union[date, str]) -> int:
    return challenge.duration - progress(challenge, today)

def day_grid(challenge: Challenge, today: Union[date, str]) -> List[ChallengeDay]:
    """One entry per challenge day: recorded outcome, missed (past, no record) or pending"""
    today = _as_date(today)
    days = []
    for index in range(challenge.duration):
        day = challenge.start + timedelta(days=index)
        record = challenge.record_for(day)
        if record is not None:
            state = DayState.SUCCESS if record.success else DayState.FAILED
        elif day < today:
            state = DayState.MISSED
        else:
            state = DayState.PENDING
        days.append(ChallengeDay(index=index + 1, date=day.isoformat(), state=state))
    return days

def summary(challenge: Challenge, today: Union[date, str]) -> dict:
    """Challenge plus derived progress fields"""
    data = challenge.to_dict()
    data.update({
        "progress": progress(challenge, today),
        "percent": round(percent(challenge, today), 2),
        "daysLeft": days_left(challenge, today),
        "canCheckIn": can_check_in(challenge, today),
        "isComplete": is_complete(challenge, today),
        "grid": [d.to_dict() for d in day_grid(challenge, today)],
    })
    return data

__all__ = [
    'CHECK_IN_REWARD',
    'CHECK_IN_PENALTY',
    'DEFAULT_DURATION',
    'DayState',
    'CheckInResult',
    'ChallengeDay',
    'create',
    'progress',
    'can_check_in',
    'check_in',
    'is_complete',
    'refresh_status',
    'delete',
    'find',
    'percent',
    'days_left',
    'day_grid',
    'summary',
]
