#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Assistant API
Chat, schedule planning and resource suggestions

Version: 1.0.0
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from core.models import ValidationError
from dashboard.dependencies import get_assistant, get_signed_in_session
from dashboard.schemas import ChatRequest, ResourcesRequest, ScheduleRequest
from services.ai_service import StudyAssistant
from services.session import StudySession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])

@router.post("/chat", response_model=Dict[str, Any])
async def chat(
    request: ChatRequest,
    session: StudySession = Depends(get_signed_in_session),
    assistant: StudyAssistant = Depends(get_assistant)
):
    """Reply to the user; an embedded add-task command creates the task"""
    reply = await assistant.send_message(request.message)
    created = None
    if reply.command is not None:
        try:
            created = session.add_task(reply.command.text, reply.command.priority)
        except ValidationError as e:
            logger.warning(f"⚠️ Assistant task rejected: {e}")

    return {
        "message": reply.to_dict(),
        "createdTask": created.to_dict() if created else None,
    }

@router.post("/schedule", response_model=Dict[str, Any])
async def generate_schedule(
    request: ScheduleRequest,
    session: StudySession = Depends(get_signed_in_session),
    assistant: StudyAssistant = Depends(get_assistant)
):
    reply = await assistant.generate_schedule(session.state.tasks.pending(), request.availability)
    return {"message": reply.to_dict()}

@router.post("/resources", response_model=Dict[str, Any])
async def suggest_resources(
    request: ResourcesRequest,
    session: StudySession = Depends(get_signed_in_session),
    assistant: StudyAssistant = Depends(get_assistant)
):
    reply = await assistant.suggest_resources(request.subject)
    return {"message": reply.to_dict()}

@router.get("/stats", response_model=Dict[str, Any])
async def get_assistant_stats(assistant: StudyAssistant = Depends(get_assistant)):
    return assistant.get_stats()
