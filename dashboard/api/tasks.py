#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Tasks API
Task list, completion toggling and the focused task

Version: 1.0.0
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_signed_in_session
from dashboard.schemas import FocusRequest, TaskCreate
from services.session import StudySession

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

@router.get("", response_model=Dict[str, Any])
async def get_tasks(session: StudySession = Depends(get_signed_in_session)):
    """Tasks in display order: pending first, then by priority and deadline"""
    tasks = session.sorted_tasks()
    return {
        "tasks": [task.to_dict() for task in tasks],
        "focusedTaskId": session.state.focused_task_id,
        "total": len(tasks),
        "pending": sum(1 for task in tasks if not task.completed),
    }

@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_task(request: TaskCreate, session: StudySession = Depends(get_signed_in_session)):
    task = session.add_task(request.text, request.priority, request.deadline)
    return {"task": task.to_dict()}

@router.post("/{task_id}/toggle", response_model=Dict[str, Any])
async def toggle_task(task_id: int, session: StudySession = Depends(get_signed_in_session)):
    task = session.toggle_task(task_id)
    return {"task": task.to_dict(), "stats": session.progress_summary()}

@router.delete("/{task_id}", response_model=Dict[str, Any])
async def delete_task(task_id: int, session: StudySession = Depends(get_signed_in_session)):
    task = session.remove_task(task_id)
    return {"deleted": task.to_dict(), "focusedTaskId": session.state.focused_task_id}

@router.put("/focus", response_model=Dict[str, Any])
async def set_focus(request: FocusRequest, session: StudySession = Depends(get_signed_in_session)):
    task = session.set_focused_task(request.task_id)
    return {"focusedTaskId": session.state.focused_task_id, "task": task.to_dict() if task else None}
