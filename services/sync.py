#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Sync Coordinator
Initial remote pull, readiness gate and debounced per-key pushes

Status machine:
    IDLE -> LOADING -> IDLE | ERROR                 (initial pull)
    IDLE -> SYNCING -> SAVED -> IDLE | ERROR        (per key save)

Each synced key owns at most one pending debounce task. Scheduling the same
key again cancels and restarts only that key's timer; when it fires the
key's current value is pushed (last write wins). Failed pushes are dropped.
After a failed initial load the gate stays closed until a load succeeds.

Version: 1.0.0
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config import config, SyncConfig
from core.models import Identity
from services.remote import RemoteStore

logger = logging.getLogger(__name__)

SYNCED_KEYS = ("tasks", "stats", "notes", "subjects", "challenges", "preferences")

class SyncStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SYNCING = "syncing"
    SAVED = "saved"
    ERROR = "error"

class SyncCoordinator:
    """Mirrors local containers to the remote store for remote identities"""

    def __init__(self, remote: Optional[RemoteStore], value_provider: Callable[[str], Any],
                 sync_config: Optional[SyncConfig] = None):
        self.remote = remote
        self.value_provider = value_provider
        self.sync_config = sync_config or config.sync

        self.identity: Optional[Identity] = None
        self.status = SyncStatus.IDLE
        self.error: Optional[str] = None
        self.ready = False
        self.loaded = False
        self.last_synced_at: Optional[str] = None

        self._timers: Dict[str, asyncio.Task] = {}
        self._saved_reset: Optional[asyncio.Task] = None
        self._status_listeners: List[Callable[[SyncStatus, Optional[str]], None]] = []

    # ===== STATE =====

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None and self.identity is not None and self.identity.is_remote

    @property
    def pending_keys(self) -> List[str]:
        return sorted(key for key, task in self._timers.items() if not task.done())

    def add_status_listener(self, listener: Callable[[SyncStatus, Optional[str]], None]) -> None:
        self._status_listeners.append(listener)

    def _set_status(self, status: SyncStatus, error: Optional[str] = None) -> None:
        self.status = status
        if status == SyncStatus.ERROR:
            self.error = error
        elif status != SyncStatus.IDLE:
            self.error = None
        for listener in list(self._status_listeners):
            try:
                listener(status, self.error)
            except Exception as e:
                logger.error(f"❌ Sync status listener failed: {e}")

    # ===== INITIAL LOAD =====

    async def load(self, identity: Optional[Identity]) -> Dict[str, Any]:
        """Pull every stored row for a remote identity.

        Returns {key: raw value} for the recognised keys present remotely.
        Local identities and failures return {}; on failure the status is
        ERROR with the message kept and local state stays authoritative.
        """
        await self._cancel_timers()
        self.identity = identity
        self.ready = False
        self.loaded = False

        if not self.remote_enabled:
            self.loaded = True
            self._set_status(SyncStatus.IDLE)
            return {}

        self._set_status(SyncStatus.LOADING)
        try:
            rows = await self.remote.fetch_all(identity.id)
        except Exception as e:
            logger.error(f"❌ Remote load failed for {identity.id}: {e}")
            self._set_status(SyncStatus.ERROR, str(e))
            return {}

        recognised = {key: value for key, value in rows.items() if key in SYNCED_KEYS}
        ignored = sorted(set(rows) - set(recognised))
        if ignored:
            logger.debug(f"Ignoring unknown remote keys: {ignored}")

        self.loaded = True
        self.last_synced_at = datetime.now().isoformat()
        self._set_status(SyncStatus.IDLE)
        logger.info(f"☁️ Remote state loaded for {identity.id}: {sorted(recognised)}")
        return recognised

    def open_gate(self) -> bool:
        """Allow outbound pushes once the remote state has been applied.

        The gate stays closed after a failed load so local defaults never
        overwrite rows that were not pulled; a later successful load opens it.
        """
        if not self.loaded:
            logger.warning("🔒 Remote state was not loaded, outbound sync stays paused")
            return False
        self.ready = True
        return True

    # ===== PUSH =====

    def schedule_push(self, key: str) -> bool:
        """(Re)start the debounce timer for key. Returns False when the push is not scheduled."""
        if not self.ready or not self.remote_enabled or key not in SYNCED_KEYS:
            return False

        existing = self._timers.get(key)
        if existing is not None and not existing.done():
            existing.cancel()

        self._timers[key] = asyncio.get_running_loop().create_task(self._debounced_push(key))
        return True

    async def _debounced_push(self, key: str) -> None:
        try:
            await asyncio.sleep(self.sync_config.debounce_seconds)
        except asyncio.CancelledError:
            return
        if self._timers.get(key) is asyncio.current_task():
            del self._timers[key]
        await self.push_now(key)

    async def push_now(self, key: str) -> bool:
        """Upsert the current value of key; failures set ERROR and are not retried"""
        if not self.remote_enabled:
            return False

        identity = self.identity
        self._set_status(SyncStatus.SYNCING)
        try:
            value = self.value_provider(key)
            await self.remote.upsert(identity.id, key, value)
        except Exception as e:
            logger.error(f"❌ Failed to sync '{key}': {e}")
            self._set_status(SyncStatus.ERROR, str(e))
            return False

        self.last_synced_at = datetime.now().isoformat()
        self._set_status(SyncStatus.SAVED)
        self._schedule_saved_reset()
        return True

    def _schedule_saved_reset(self) -> None:
        if self._saved_reset is not None and not self._saved_reset.done():
            self._saved_reset.cancel()
        self._saved_reset = asyncio.get_running_loop().create_task(self._reset_saved())

    async def _reset_saved(self) -> None:
        try:
            await asyncio.sleep(self.sync_config.saved_reset_seconds)
        except asyncio.CancelledError:
            return
        if self.status == SyncStatus.SAVED:
            self._set_status(SyncStatus.IDLE)

    # ===== SHUTDOWN =====

    async def _cancel_timers(self) -> List[str]:
        pending = self.pending_keys
        tasks = list(self._timers.values())
        if self._saved_reset is not None:
            tasks.append(self._saved_reset)
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        self._saved_reset = None
        return pending

    async def close(self, flush: Optional[bool] = None) -> List[str]:
        """Cancel pending pushes, optionally pushing them first.

        Without flush a mutation made less than one debounce window before
        closing is not uploaded. Returns the keys that were pending.
        """
        flush = self.sync_config.flush_on_exit if flush is None else flush
        pending = await self._cancel_timers()

        if flush and pending and self.ready:
            logger.info(f"💾 Flushing pending keys before close: {pending}")
            for key in pending:
                await self.push_now(key)
        elif pending:
            logger.info(f"🧹 Dropped pending sync for: {pending}")

        if self._saved_reset is not None and not self._saved_reset.done():
            self._saved_reset.cancel()
        self._saved_reset = None
        self.ready = False
        self.loaded = False
        self.identity = None
        self.status = SyncStatus.IDLE
        self.error = None
        return pending

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "error": self.error,
            "ready": self.ready,
            "loaded": self.loaded,
            "remote": self.remote_enabled,
            "pending": self.pending_keys,
            "lastSyncedAt": self.last_synced_at,
        }

__all__ = ['SYNCED_KEYS', 'SyncStatus', 'SyncCoordinator']
