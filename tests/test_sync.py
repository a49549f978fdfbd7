"""Tests for the sync coordinator: initial pull, gate and debounced pushes."""
import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from config import SyncConfig
from services.remote import MemoryRemoteStore, RemoteStoreError
from services.sync import SyncCoordinator, SyncStatus


WINDOW = 0.1


@pytest.fixture
def values():
    return {"tasks": [{"id": 1, "text": "a"}], "stats": {"level": 1}}


@pytest_asyncio.fixture
async def coordinator(remote, values):
    sync = SyncCoordinator(
        remote,
        values.__getitem__,
        SyncConfig(debounce_seconds=WINDOW, saved_reset_seconds=WINDOW),
    )
    yield sync
    await sync.close(flush=False)


@pytest_asyncio.fixture
async def ready(coordinator, remote_identity):
    await coordinator.load(remote_identity)
    coordinator.open_gate()
    return coordinator


class TestInitialLoad:
    @pytest.mark.asyncio
    async def test_no_rows_keeps_defaults(self, coordinator, remote_identity):
        rows = await coordinator.load(remote_identity)

        assert rows == {}
        assert coordinator.status == SyncStatus.IDLE
        assert coordinator.ready is False

    @pytest.mark.asyncio
    async def test_only_known_keys_returned(self, values, remote_identity):
        remote = MemoryRemoteStore({remote_identity.id: {"tasks": [], "theme": "x", "stats": {"level": 3}}})
        sync = SyncCoordinator(remote, values.__getitem__)

        rows = await sync.load(remote_identity)

        assert rows == {"tasks": [], "stats": {"level": 3}}

    @pytest.mark.asyncio
    async def test_load_failure_sets_error(self, coordinator, remote, remote_identity):
        remote.fetch_all = AsyncMock(side_effect=RemoteStoreError("network down"))

        rows = await coordinator.load(remote_identity)

        assert rows == {}
        assert coordinator.status == SyncStatus.ERROR
        assert coordinator.error == "network down"

    @pytest.mark.asyncio
    async def test_local_identity_never_touches_remote(self, coordinator, remote, local_identity):
        remote.fetch_all = AsyncMock(return_value={})

        await coordinator.load(local_identity)
        coordinator.open_gate()

        remote.fetch_all.assert_not_called()
        assert coordinator.schedule_push("tasks") is False


class TestGate:
    @pytest.mark.asyncio
    async def test_no_push_before_gate(self, coordinator, remote_identity):
        await coordinator.load(remote_identity)

        assert coordinator.schedule_push("tasks") is False

    @pytest.mark.asyncio
    async def test_gate_stays_closed_after_failed_load(self, coordinator, remote, remote_identity):
        fetch_all = remote.fetch_all
        remote.fetch_all = AsyncMock(side_effect=RemoteStoreError("network down"))
        await coordinator.load(remote_identity)

        assert coordinator.open_gate() is False
        assert coordinator.schedule_push("tasks") is False
        assert coordinator.to_dict()["loaded"] is False

        remote.fetch_all = fetch_all
        await coordinator.load(remote_identity)

        assert coordinator.open_gate() is True
        assert coordinator.schedule_push("tasks") is True

    @pytest.mark.asyncio
    async def test_unsynced_key_rejected(self, ready):
        assert ready.schedule_push("focus") is False


class TestDebouncedPush:
    @pytest.mark.asyncio
    async def test_rapid_saves_coalesce(self, ready, remote, values, remote_identity):
        assert ready.schedule_push("tasks") is True
        await asyncio.sleep(WINDOW / 2)
        values["tasks"] = [{"id": 1, "text": "b"}]
        ready.schedule_push("tasks")
        await asyncio.sleep(WINDOW * 3)

        assert remote.upserts == [(remote_identity.id, "tasks", [{"id": 1, "text": "b"}])]

    @pytest.mark.asyncio
    async def test_keys_debounce_independently(self, ready, remote):
        ready.schedule_push("tasks")
        ready.schedule_push("stats")
        await asyncio.sleep(WINDOW * 3)

        assert sorted(key for _, key, _ in remote.upserts) == ["stats", "tasks"]

    @pytest.mark.asyncio
    async def test_status_cycle(self, coordinator, remote_identity):
        seen = []
        coordinator.add_status_listener(lambda status, error: seen.append(status))

        await coordinator.load(remote_identity)
        coordinator.open_gate()
        coordinator.schedule_push("stats")
        await asyncio.sleep(WINDOW * 4)

        assert seen == [
            SyncStatus.LOADING, SyncStatus.IDLE, SyncStatus.SYNCING, SyncStatus.SAVED, SyncStatus.IDLE,
        ]

    @pytest.mark.asyncio
    async def test_failed_push_not_retried(self, ready, remote):
        remote.upsert = AsyncMock(side_effect=RemoteStoreError("quota exceeded"))

        ready.schedule_push("tasks")
        await asyncio.sleep(WINDOW * 4)

        assert remote.upsert.await_count == 1
        assert ready.status == SyncStatus.ERROR
        assert ready.error == "quota exceeded"

    @pytest.mark.asyncio
    async def test_pending_keys(self, ready):
        ready.schedule_push("tasks")

        assert ready.pending_keys == ["tasks"]
        assert ready.to_dict()["pending"] == ["tasks"]


class TestClose:
    @pytest.mark.asyncio
    async def test_close_drops_pending(self, ready, remote):
        ready.schedule_push("tasks")

        pending = await ready.close()
        await asyncio.sleep(WINDOW * 2)

        assert pending == ["tasks"]
        assert remote.upserts == []
        assert ready.ready is False

    @pytest.mark.asyncio
    async def test_close_with_flush_pushes(self, ready, remote, remote_identity, values):
        ready.schedule_push("stats")

        pending = await ready.close(flush=True)

        assert pending == ["stats"]
        assert remote.upserts == [(remote_identity.id, "stats", values["stats"])]
