# services/__init__.py

"""
StudySync services

Authentication, the remote key/value store, the sync coordinator, the
per-user session and the study assistant.
"""

from .remote import RemoteStore, SupabaseRemoteStore, MemoryRemoteStore, RemoteStoreError
from .auth import AuthService, AuthError
from .sync import SyncCoordinator, SyncStatus, SYNCED_KEYS
from .session import StudySession, SessionError, NotSignedInError, ConfirmationRequiredError
from .ai_service import StudyAssistant, create_study_assistant

__all__ = [
    'RemoteStore',
    'SupabaseRemoteStore',
    'MemoryRemoteStore',
    'RemoteStoreError',
    'AuthService',
    'AuthError',
    'SyncCoordinator',
    'SyncStatus',
    'SYNCED_KEYS',
    'StudySession',
    'SessionError',
    'NotSignedInError',
    'ConfirmationRequiredError',
    'StudyAssistant',
    'create_study_assistant',
]
