#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - API Schemas
Request bodies accepted by the dashboard API

Version: 1.0.0
"""

from datetime import date
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["high", "medium", "low"]
RecordId = Union[int, str]

# ===== SESSION =====

class LocalLoginRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class CredentialsRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6)

# ===== TASKS =====

class TaskCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    priority: Priority = "medium"
    deadline: Optional[str] = None

class FocusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: Optional[RecordId] = Field(None, alias="taskId")

# ===== PROGRESS =====

class XpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Union[int, float]
    task_count_delta: int = Field(0, alias="taskCountDelta")

class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dark_mode: Optional[bool] = Field(None, alias="darkMode")
    notifications: Optional[bool] = None
    sound: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

class ResetRequest(BaseModel):
    confirm: bool = False

class TimerModeRequest(BaseModel):
    mode: Literal["focus", "shortBreak", "longBreak"]

# ===== CHALLENGES =====

class ChallengeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    duration: int = Field(30, ge=1, le=365)
    start_date: Optional[date] = Field(None, alias="startDate")

class CheckInRequest(BaseModel):
    success: bool

# ===== NOTES =====

class NoteUpdate(BaseModel):
    content: str

class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = None

class SubjectNoteSave(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    note_id: Optional[RecordId] = Field(None, alias="noteId")

# ===== ASSISTANT =====

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)

class ScheduleRequest(BaseModel):
    availability: str = Field("today", max_length=500)

class ResourcesRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)

__all__ = [
    'LocalLoginRequest',
    'CredentialsRequest',
    'TaskCreate',
    'FocusRequest',
    'XpRequest',
    'PreferencesUpdate',
    'ResetRequest',
    'TimerModeRequest',
    'ChallengeCreate',
    'CheckInRequest',
    'NoteUpdate',
    'SubjectCreate',
    'SubjectNoteSave',
    'ChatRequest',
    'ScheduleRequest',
    'ResourcesRequest',
]
