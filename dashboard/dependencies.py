#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Dashboard Dependencies
Service container and FastAPI providers

Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status

from config import config
from database.storage import JsonFileStore, KeyValueStore
from services.ai_service import StudyAssistant, create_study_assistant
from services.auth import AuthService
from services.remote import RemoteStore, SupabaseRemoteStore
from services.session import StudySession

logger = logging.getLogger(__name__)

# ===== CONTAINER =====

@dataclass
class ServiceContainer:
    """Everything one personal session needs"""
    store: KeyValueStore
    session: StudySession
    auth: AuthService
    assistant: StudyAssistant
    remote: Optional[RemoteStore] = None

    async def startup(self) -> None:
        identity = await self.session.restore(identity_validator=self.auth.get_session)
        if identity:
            logger.info(f"👤 Restored session for {identity.label}")
        else:
            logger.info("👤 No stored identity, waiting for sign in")

    async def shutdown(self) -> None:
        await self.session.close()
        await self.auth.close()
        if self.remote is not None:
            await self.remote.close()

def build_container(store: Optional[KeyValueStore] = None) -> ServiceContainer:
    """Container wired from the global configuration"""
    store = store or JsonFileStore(config.storage.data_dir)
    auth = AuthService(config.remote, store=store)
    remote = None
    if config.remote.enabled:
        remote = SupabaseRemoteStore(config.remote, access_token_provider=auth.access_token)

    return ServiceContainer(
        store=store,
        session=StudySession(store, remote=remote),
        auth=auth,
        assistant=create_study_assistant(config.ai),
        remote=remote,
    )

# ===== GLOBAL INSTANCE =====

_container: Optional[ServiceContainer] = None

def set_container(container: Optional[ServiceContainer]) -> None:
    global _container
    _container = container

def get_container() -> ServiceContainer:
    if _container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up"
        )
    return _container

# ===== PROVIDERS =====

def get_session(container: ServiceContainer = Depends(get_container)) -> StudySession:
    return container.session

def get_signed_in_session(session: StudySession = Depends(get_session)) -> StudySession:
    if not session.is_signed_in:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please sign in first"
        )
    return session

def get_auth(container: ServiceContainer = Depends(get_container)) -> AuthService:
    return container.auth

def get_assistant(container: ServiceContainer = Depends(get_container)) -> StudyAssistant:
    return container.assistant

__all__ = [
    'ServiceContainer',
    'build_container',
    'set_container',
    'get_container',
    'get_session',
    'get_signed_in_session',
    'get_auth',
    'get_assistant',
]
