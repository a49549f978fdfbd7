#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Session API
Sign in, sign up, sign out and the full state snapshot

Version: 1.0.0
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_auth, get_session, get_signed_in_session
from dashboard.schemas import CredentialsRequest, LocalLoginRequest
from services.auth import AuthService
from services.session import StudySession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])

@router.get("", response_model=Dict[str, Any])
async def get_current_session(session: StudySession = Depends(get_session)):
    """Current identity, or signedIn false"""
    identity = session.identity
    return {
        "signedIn": identity is not None,
        "identity": identity.to_dict() if identity else None,
        "sync": session.sync.to_dict(),
    }

@router.get("/snapshot", response_model=Dict[str, Any])
async def get_snapshot(session: StudySession = Depends(get_signed_in_session)):
    return session.snapshot()

@router.post("/local", response_model=Dict[str, Any])
async def login_local(
    request: LocalLoginRequest,
    session: StudySession = Depends(get_session),
    auth: AuthService = Depends(get_auth)
):
    identity = auth.sign_in_local(request.name)
    streak = await session.start(identity)
    return {"identity": identity.to_dict(), "streak": streak.outcome.value}

@router.post("/signup", response_model=Dict[str, Any])
async def sign_up(
    request: CredentialsRequest,
    session: StudySession = Depends(get_session),
    auth: AuthService = Depends(get_auth)
):
    """Create an account; the session starts only if the backend issued tokens"""
    identity = await auth.sign_up(request.email, request.password)
    if auth.access_token() is None:
        return {
            "identity": identity.to_dict(),
            "confirmationRequired": True,
            "message": "Check your email to confirm your account, then sign in.",
        }

    streak = await session.start(identity)
    return {"identity": identity.to_dict(), "confirmationRequired": False, "streak": streak.outcome.value}

@router.post("/signin", response_model=Dict[str, Any])
async def sign_in(
    request: CredentialsRequest,
    session: StudySession = Depends(get_session),
    auth: AuthService = Depends(get_auth)
):
    identity = await auth.sign_in(request.email, request.password)
    streak = await session.start(identity)
    return {"identity": identity.to_dict(), "streak": streak.outcome.value}

@router.post("/logout", response_model=Dict[str, Any])
async def logout(
    session: StudySession = Depends(get_session),
    auth: AuthService = Depends(get_auth)
):
    await session.logout(auth)
    return {"signedIn": False}
