#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Challenges API

Version: 1.0.0
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_signed_in_session
from dashboard.schemas import ChallengeCreate, CheckInRequest
from services.session import StudySession

router = APIRouter(prefix="/api/challenges", tags=["challenges"])

@router.get("", response_model=Dict[str, Any])
async def get_challenges(session: StudySession = Depends(get_signed_in_session)):
    summaries = session.challenge_summaries()
    return {
        "challenges": summaries,
        "active": sum(1 for item in summaries if not item["isComplete"]),
        "total": len(summaries),
    }

@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_challenge(request: ChallengeCreate, session: StudySession = Depends(get_signed_in_session)):
    challenge = session.create_challenge(request.title, request.duration, request.start_date)
    return {"challenge": challenge.to_dict()}

@router.post("/{challenge_id}/check-in", response_model=Dict[str, Any])
async def check_in(challenge_id: int, request: CheckInRequest,
                   session: StudySession = Depends(get_signed_in_session)):
    """Record today's outcome; a second check-in on the same day changes nothing"""
    result = session.check_in(challenge_id, request.success)
    return {
        "applied": result.applied,
        "success": result.success,
        "xpDelta": result.xp_delta,
        "challenge": result.challenge.to_dict(),
        "stats": session.progress_summary(),
    }

@router.delete("/{challenge_id}", response_model=Dict[str, Any])
async def delete_challenge(challenge_id: int, session: StudySession = Depends(get_signed_in_session)):
    challenge = session.delete_challenge(challenge_id)
    return {"deleted": challenge.to_dict()}
