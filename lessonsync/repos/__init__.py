from .snapshot_storage import (
    SnapshotStorage,
    MemorySnapshotStorage,
    FileSnapshotStorage,
    RedisSnapshotStorage,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_FILE,
)

__all__ = [
    "SnapshotStorage",
    "MemorySnapshotStorage",
    "FileSnapshotStorage",
    "RedisSnapshotStorage",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_FILE",
]
