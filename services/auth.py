#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Authentication
Local name-only sign in and hosted email/password accounts

Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from config import config, RemoteConfig
from core.models import Identity, ValidationError, validate_text
from database.storage import KeyValueStore
from services.remote import SupabaseHTTP, RemoteNotConfiguredError

logger = logging.getLogger(__name__)

# Transport failures, timeouts and undecodable bodies
REQUEST_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)

class AuthError(Exception):
    """Authentication failed; the message is safe to show to the user"""
    pass

@dataclass
class AuthSession:
    """Tokens for a signed-in remote user"""
    access_token: str
    user: Dict[str, Any]
    refresh_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthSession":
        if not isinstance(data, dict) or not data.get("access_token") or not isinstance(data.get("user"), dict):
            raise ValidationError("Malformed auth session")
        return cls(
            access_token=data["access_token"],
            user=data["user"],
            refresh_token=data.get("refresh_token"),
        )

class AuthService(SupabaseHTTP):
    """Sign-up, sign-in, session retrieval and sign-out.

    Remote calls go to the GoTrue endpoints of the configured backend. The
    current session is kept in memory and, when a store is given, persisted
    so it survives a restart.
    """

    SESSION_KEY_SUFFIX = "auth-session"

    def __init__(self, remote_config: Optional[RemoteConfig] = None, store: Optional[KeyValueStore] = None):
        super().__init__(remote_config, access_token_provider=self.access_token)
        self.store = store
        self.session: Optional[AuthSession] = None

    @property
    def session_key(self) -> str:
        return f"{config.storage.namespace_prefix}-{self.SESSION_KEY_SUFFIX}"

    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    # ===== LOCAL =====

    def sign_in_local(self, name: str) -> Identity:
        """Name-only identity; never touches the backend"""
        try:
            identity = Identity.create_local(name)
        except ValidationError as e:
            raise AuthError(str(e))
        logger.info(f"👤 Local sign in: {identity.display_name} ({identity.id})")
        return identity

    # ===== REMOTE =====

    async def _post(self, path: str, payload: Dict[str, Any], params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            session = await self.http_session()
            async with session.post(f"{self.base_url}/auth/v1/{path}", params=params,
                                    json=payload, headers=self.headers()) as response:
                if response.status not in (200, 201):
                    raise AuthError(await self.error_message(response))
                data = await response.json(content_type=None)
        except RemoteNotConfiguredError:
            raise AuthError("Cloud accounts are not available: remote backend is not configured")
        except REQUEST_ERRORS as e:
            logger.error(f"❌ Auth request '{path}' failed: {e!r}")
            raise AuthError(f"Could not reach the authentication service: {e or type(e).__name__}")
        return data if isinstance(data, dict) else {}

    def _remember(self, data: Dict[str, Any]) -> Optional[Identity]:
        user = data.get("user") if "user" in data else data
        if not isinstance(user, dict) or not user.get("id"):
            raise AuthError("Authentication service returned no user")

        identity = Identity.from_remote_user(user)
        if data.get("access_token"):
            self.session = AuthSession(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
                user=user,
            )
            if self.store is not None:
                self.store.save(self.session_key, self.session.to_dict())
        return identity

    @staticmethod
    def _credentials(email: str, password: str) -> Dict[str, str]:
        try:
            email = validate_text(email, min_length=3, max_length=320, field_name="email")
        except ValidationError as e:
            raise AuthError(str(e))
        if "@" not in email:
            raise AuthError("Please enter a valid email address")
        if not isinstance(password, str) or len(password) < 6:
            raise AuthError("Password must contain at least 6 characters")
        return {"email": email, "password": password}

    async def sign_up(self, email: str, password: str) -> Identity:
        """Create an account.

        When the backend requires email confirmation no session is returned;
        the identity is still returned but sync starts only after sign in.
        """
        data = await self._post("signup", self._credentials(email, password))
        identity = self._remember(data)
        logger.info(f"✅ Account created for {identity.email}")
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        data = await self._post("token", self._credentials(email, password), params={"grant_type": "password"})
        if not data.get("access_token"):
            raise AuthError("Authentication service returned no session")
        identity = self._remember(data)
        logger.info(f"✅ Signed in: {identity.email}")
        return identity

    async def get_session(self) -> Optional[Identity]:
        """Identity of the stored session if the backend still accepts it"""
        if self.session is None and self.store is not None:
            raw = self.store.load(self.session_key)
            if raw is not None:
                try:
                    self.session = AuthSession.from_dict(raw)
                except ValidationError as e:
                    logger.warning(f"⚠️ Ignoring stored auth session: {e}")
                    self.store.delete(self.session_key)

        if self.session is None or not self.remote_config.enabled:
            return None

        try:
            session = await self.http_session()
            async with session.get(f"{self.base_url}/auth/v1/user", headers=self.headers()) as response:
                if response.status != 200:
                    logger.info(f"🔒 Stored session rejected ({response.status})")
                    self._forget()
                    return None
                user = await response.json(content_type=None)
        except REQUEST_ERRORS as e:
            logger.warning(f"⚠️ Could not verify session, using cached user: {e!r}")
            user = self.session.user

        if not isinstance(user, dict) or not user.get("id"):
            user = self.session.user

        return Identity.from_remote_user(user)

    async def sign_out(self) -> None:
        """Invalidate the remote session; local state is cleared even if the call fails"""
        if self.session is not None and self.remote_config.enabled:
            try:
                session = await self.http_session()
                async with session.post(f"{self.base_url}/auth/v1/logout", headers=self.headers()) as response:
                    if response.status not in (200, 204):
                        logger.warning(f"⚠️ Sign out returned {response.status}")
            except REQUEST_ERRORS as e:
                logger.warning(f"⚠️ Sign out request failed: {e!r}")
        self._forget()
        logger.info("👋 Signed out")

    def _forget(self) -> None:
        self.session = None
        if self.store is not None:
            self.store.delete(self.session_key)

__all__ = ['AuthError', 'AuthSession', 'AuthService']
