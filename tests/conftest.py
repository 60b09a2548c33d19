"""Shared pytest fixtures."""
from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi.testclient import TestClient

from fake_server import BASE_URL, VALID_TOKEN, create_fake_progress_api
from lessonsync.auth.token_provider import TokenStore
from lessonsync.repos.snapshot_storage import MemorySnapshotStorage
from lessonsync.services.progress_store import ProgressStore
from lessonsync.services.remote_progress import RemoteProgressClient
from lessonsync.services.sync_service import SyncEngine


class FakeClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start: datetime = datetime(2026, 1, 8, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class RecordingEngine:
    """Stands in for SyncEngine where only the pushes matter."""

    def __init__(self):
        self.pushes = []

    async def push_heartbeat(self, lesson_id, seconds):
        self.pushes.append(("heartbeat", lesson_id, seconds))

    async def push_completion(self, lesson_id, seconds):
        self.pushes.append(("completion", lesson_id, seconds))

    @property
    def heartbeats(self):
        return [p[2] for p in self.pushes if p[0] == "heartbeat"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemorySnapshotStorage()


@pytest.fixture
def store(storage, clock):
    return ProgressStore(storage, clock=clock)


@pytest.fixture
def token_store():
    return TokenStore(VALID_TOKEN)


@pytest.fixture
def fake_api():
    return create_fake_progress_api()


@pytest.fixture
def api_session(fake_api):
    client = TestClient(fake_api)
    yield client
    client.close()


@pytest.fixture
def remote_client(api_session, token_store):
    return RemoteProgressClient(BASE_URL, token_store, session=api_session)


@pytest.fixture
def error_log():
    return []


@pytest.fixture
def engine(store, remote_client, clock, error_log):
    return SyncEngine(
        store,
        remote_client,
        clock=clock,
        on_error=lambda op, lesson_id, exc: error_log.append((op, lesson_id, exc)),
    )


@pytest.fixture
def recording_engine():
    return RecordingEngine()


@pytest.fixture
def scheduler():
    # never started: jobs stay pending and ticks are driven by hand
    return AsyncIOScheduler()
