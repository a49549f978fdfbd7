#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Sync API

Version: 1.0.0
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_session, get_signed_in_session
from services.session import StudySession

router = APIRouter(prefix="/api/sync", tags=["sync"])

@router.get("", response_model=Dict[str, Any])
async def get_sync_status(session: StudySession = Depends(get_session)):
    """Cloud sync indicator: idle, loading, syncing, saved or error"""
    return session.sync.to_dict()

@router.post("/retry", response_model=Dict[str, Any])
async def retry_sync(session: StudySession = Depends(get_signed_in_session)):
    """Pull the remote state again after a failed load"""
    await session.retry_sync()
    return session.sync.to_dict()
