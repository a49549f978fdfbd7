#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Progress API
Stats, achievements, preferences, focus timer and data reset

Version: 1.0.0
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_session, get_signed_in_session
from dashboard.schemas import PreferencesUpdate, ResetRequest, TimerModeRequest, XpRequest
from services.session import StudySession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["progress"])

# ===== STATS =====

@router.get("/stats", response_model=Dict[str, Any])
async def get_stats(session: StudySession = Depends(get_signed_in_session)):
    return session.progress_summary()

@router.post("/stats/xp", response_model=Dict[str, Any])
async def add_xp(request: XpRequest, session: StudySession = Depends(get_signed_in_session)):
    """Manual XP adjustment; negative amounts never drop below level 1 / 0 XP"""
    result = session.add_xp(request.amount, request.task_count_delta)
    return {"stats": session.progress_summary(), "leveledUp": result.leveled_up}

@router.get("/achievements", response_model=Dict[str, Any])
async def get_achievements(session: StudySession = Depends(get_signed_in_session)):
    result = session.achievements()
    return {
        "unlocked": result["unlocked"],
        "locked": result["locked"],
        "unlockedCount": len(result["unlocked"]),
        "total": len(result["unlocked"]) + len(result["locked"]),
    }

# ===== PREFERENCES =====

@router.get("/preferences", response_model=Dict[str, Any])
async def get_preferences(session: StudySession = Depends(get_signed_in_session)):
    return session.state.preferences.to_dict()

@router.patch("/preferences", response_model=Dict[str, Any])
async def update_preferences(request: PreferencesUpdate, session: StudySession = Depends(get_signed_in_session)):
    preferences = session.update_preferences(request.changes())
    return preferences.to_dict()

# ===== RESET =====

@router.post("/reset", response_model=Dict[str, Any])
async def reset_data(request: ResetRequest, session: StudySession = Depends(get_signed_in_session)):
    session.reset_data(confirm=request.confirm)
    return {"reset": True, "stats": session.progress_summary()}

# ===== TIMER =====

@router.get("/timer", response_model=Dict[str, Any])
async def get_timer(session: StudySession = Depends(get_session)):
    return session.timer.to_dict()

@router.post("/timer/toggle", response_model=Dict[str, Any])
async def toggle_timer(session: StudySession = Depends(get_session)):
    session.timer.toggle()
    return session.timer.to_dict()

@router.post("/timer/reset", response_model=Dict[str, Any])
async def reset_timer(session: StudySession = Depends(get_session)):
    session.timer.reset()
    return session.timer.to_dict()

@router.put("/timer/mode", response_model=Dict[str, Any])
async def set_timer_mode(request: TimerModeRequest, session: StudySession = Depends(get_session)):
    session.timer.set_mode(request.mode)
    return session.timer.to_dict()
