#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Remote Store
Upstream (user_id, key) -> JSON rows for multi-device sync

Version: 1.0.0
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import aiohttp

from config import config, RemoteConfig

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class RemoteStoreError(Exception):
    """Remote read or write failed"""
    pass

class RemoteNotConfiguredError(RemoteStoreError):
    pass

# ===== HTTP BASE =====

class SupabaseHTTP:
    """Shared aiohttp session and headers for the hosted backend"""

    def __init__(self, remote_config: Optional[RemoteConfig] = None,
                 access_token_provider: Optional[Callable[[], Optional[str]]] = None):
        self.remote_config = remote_config or config.remote
        self.access_token_provider = access_token_provider
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        if not self.remote_config.enabled:
            raise RemoteNotConfiguredError("Remote backend is not configured")
        return self.remote_config.supabase_url

    def headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        token = None
        if self.access_token_provider:
            token = self.access_token_provider()
        headers = {
            "apikey": self.remote_config.supabase_anon_key or "",
            "Authorization": f"Bearer {token or self.remote_config.supabase_anon_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def http_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.remote_config.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    @staticmethod
    async def error_message(response: aiohttp.ClientResponse) -> str:
        """Best effort human readable error from a backend response"""
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError):
            body = None
        if isinstance(body, dict):
            for field_name in ("msg", "message", "error_description", "error"):
                if body.get(field_name):
                    return str(body[field_name])
        return f"HTTP {response.status}"

# ===== INTERFACE =====

class RemoteStore(ABC):
    """Table of (user_id, key, value) rows, unique on (user_id, key)"""

    @abstractmethod
    async def fetch_all(self, user_id: str) -> Dict[str, Any]:
        """Every stored key/value for a user"""
        pass

    @abstractmethod
    async def upsert(self, user_id: str, key: str, value: Any) -> None:
        pass

    async def close(self) -> None:
        pass

# ===== IMPLEMENTATIONS =====

class SupabaseRemoteStore(RemoteStore, SupabaseHTTP):
    """PostgREST rows in the configured table"""

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.remote_config.table}"

    async def fetch_all(self, user_id: str) -> Dict[str, Any]:
        session = await self.http_session()
        params = {"user_id": f"eq.{user_id}", "select": "key,value"}
        try:
            async with session.get(self.table_url, params=params, headers=self.headers()) as response:
                if response.status != 200:
                    raise RemoteStoreError(await self.error_message(response))
                rows = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise RemoteStoreError(f"Network error: {e}")

        if not isinstance(rows, list):
            raise RemoteStoreError("Unexpected response from remote store")

        result = {}
        for row in rows:
            if isinstance(row, dict) and "key" in row:
                result[row["key"]] = row.get("value")
        logger.debug(f"⬇️ Fetched {len(result)} remote rows for {user_id}")
        return result

    async def upsert(self, user_id: str, key: str, value: Any) -> None:
        session = await self.http_session()
        payload = {"user_id": user_id, "key": key, "value": value}
        headers = self.headers({"Prefer": "resolution=merge-duplicates,return=minimal"})
        try:
            async with session.post(self.table_url, params={"on_conflict": "user_id,key"},
                                    json=payload, headers=headers) as response:
                if response.status not in (200, 201, 204):
                    raise RemoteStoreError(await self.error_message(response))
        except aiohttp.ClientError as e:
            raise RemoteStoreError(f"Network error: {e}")
        logger.debug(f"⬆️ Upserted {key} for {user_id}")

    async def close(self) -> None:
        await SupabaseHTTP.close(self)

class MemoryRemoteStore(RemoteStore):
    """In-process stand-in for the hosted table"""

    def __init__(self, rows: Optional[Dict[str, Dict[str, Any]]] = None):
        self.rows: Dict[str, Dict[str, Any]] = copy.deepcopy(rows or {})
        self.upserts = []

    async def fetch_all(self, user_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.rows.get(user_id, {}))

    async def upsert(self, user_id: str, key: str, value: Any) -> None:
        self.rows.setdefault(user_id, {})[key] = copy.deepcopy(value)
        self.upserts.append((user_id, key, copy.deepcopy(value)))

__all__ = [
    'RemoteStoreError',
    'RemoteNotConfiguredError',
    'SupabaseHTTP',
    'RemoteStore',
    'SupabaseRemoteStore',
    'MemoryRemoteStore',
]
