# deps.py
from typing import Optional

import requests
from redis import Redis

from lessonsync.config import Settings
from lessonsync.repos.snapshot_storage import (
    FileSnapshotStorage,
    MemorySnapshotStorage,
    RedisSnapshotStorage,
    SnapshotStorage,
)
from lessonsync.repos.storage_keys import progress_snapshot_key


def create_redis_client(url: str) -> Redis:
    # synchronous client; store writes are synchronous by contract
    return Redis.from_url(url, encoding="utf-8", decode_responses=True, socket_timeout=5)


def create_http_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": "lessonsync"})
    return session


def create_storage(settings: Settings, redis_client: Optional[Redis] = None) -> SnapshotStorage:
    if settings.STORAGE_BACKEND == "memory":
        return MemorySnapshotStorage()
    if settings.STORAGE_BACKEND == "redis":
        client = redis_client or create_redis_client(settings.REDIS_URL)
        return RedisSnapshotStorage(client, key=progress_snapshot_key(settings.PROGRESS_STORAGE_KEY, settings.PROGRESS_USER_ID))
    return FileSnapshotStorage(settings.PROGRESS_FILE)
