"""Pytest configuration for StudySync tests."""
import os
import tempfile

os.environ["ENVIRONMENT"] = "testing"
os.environ["TIMEZONE"] = "UTC"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="studysync-tests-")
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import pytz

from config import SyncConfig
from core.models import Identity
from database.storage import MemoryStore
from services.ai_service import StudyAssistant, TextCompletionClient
from services.remote import MemoryRemoteStore
from services.session import StudySession


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(pytz.utc.localize(datetime(2025, 3, 10, 12, 0, 0)))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def remote():
    return MemoryRemoteStore()


@pytest.fixture
def sync_config():
    """Short windows so debounce tests run quickly."""
    return SyncConfig(debounce_seconds=0.05, saved_reset_seconds=0.05, flush_on_exit=False)


@pytest.fixture
def local_identity():
    return Identity(id="user_1000", auth_type="local", display_name="Ada")


@pytest.fixture
def remote_identity():
    return Identity(id="9f2c-user", auth_type="remote", display_name="ada", email="ada@example.com")


@pytest_asyncio.fixture
async def session(store, remote, sync_config, clock, local_identity):
    """A started session for a local user."""
    study_session = StudySession(store, remote=remote, sync_config=sync_config, clock=clock)
    await study_session.start(local_identity)
    yield study_session
    await study_session.close()


@pytest_asyncio.fixture
async def remote_session(store, remote, sync_config, clock, remote_identity):
    """A started session for a remote user with nothing stored remotely."""
    study_session = StudySession(store, remote=remote, sync_config=sync_config, clock=clock)
    await study_session.start(remote_identity)
    yield study_session
    await study_session.close()


@pytest.fixture
def completion_client():
    """Completion client whose replies are set per test."""
    client = AsyncMock(spec=TextCompletionClient)
    client.complete = AsyncMock(return_value="Keep going! 💪")
    return client


@pytest.fixture
def assistant(completion_client):
    return StudyAssistant(completion_client)
