# repos/snapshot_storage.py
"""
Persistence collaborators for the progress snapshot.

The store only needs "save the whole snapshot" and "load the whole snapshot".
Three backends:
- MemorySnapshotStorage: process-local, nothing survives a restart
- FileSnapshotStorage: one JSON document on disk, replaced atomically
- RedisSnapshotStorage: one JSON string under a single key
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from redis import Redis

from lessonsync.repos.storage_keys import progress_snapshot_key
from lessonsync.schemas.progress_schema import ProgressSnapshot

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_DIR = Path.home() / ".lessonsync"
DEFAULT_PROGRESS_FILE = DEFAULT_PROGRESS_DIR / "progress.json"


def _decode(raw, source: str) -> Optional[ProgressSnapshot]:
    try:
        return ProgressSnapshot.model_validate_json(raw)
    except ValidationError as e:
        logger.error(f"Discarding unreadable progress snapshot from {source}: {str(e)}")
        return None


class SnapshotStorage(ABC):
    @abstractmethod
    def save(self, snapshot: ProgressSnapshot) -> None:
        ...

    @abstractmethod
    def load(self) -> Optional[ProgressSnapshot]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemorySnapshotStorage(SnapshotStorage):
    def __init__(self, initial: Optional[ProgressSnapshot] = None):
        self._raw: Optional[str] = initial.model_dump_json() if initial is not None else None
        self.save_count = 0

    def save(self, snapshot: ProgressSnapshot) -> None:
        self._raw = snapshot.model_dump_json()
        self.save_count += 1

    def load(self) -> Optional[ProgressSnapshot]:
        if self._raw is None:
            return None
        return _decode(self._raw, "memory")

    def clear(self) -> None:
        self._raw = None


class FileSnapshotStorage(SnapshotStorage):
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_PROGRESS_FILE

    def save(self, snapshot: ProgressSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = snapshot.model_dump_json(indent=2)
        # write to a sibling temp file, then swap it in
        fd, tmp_name = tempfile.mkstemp(prefix=".progress-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> Optional[ProgressSnapshot]:
        if not self.path.exists():
            return None
        return _decode(self.path.read_text(encoding="utf-8"), str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class RedisSnapshotStorage(SnapshotStorage):
    def __init__(self, client: Redis, key: Optional[str] = None):
        self.redis = client
        self.key = key or progress_snapshot_key()

    def save(self, snapshot: ProgressSnapshot) -> None:
        self.redis.set(self.key, snapshot.model_dump_json())

    def load(self) -> Optional[ProgressSnapshot]:
        raw = self.redis.get(self.key)
        if raw is None:
            return None
        return _decode(raw, f"redis key {self.key}")

    def clear(self) -> None:
        self.redis.delete(self.key)
