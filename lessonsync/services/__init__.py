"""
Progress engine services.

- ProgressStore: local snapshot, the single read/write path for the UI
- RemoteProgressClient: GET /progress and POST /lessons/{id}/progress
- SyncEngine: pull-and-merge plus best-effort heartbeat/completion pushes
"""

from .progress_store import ProgressStore
from .remote_progress import RemoteProgressClient
from .sync_service import SyncEngine, merge_progress, clamp_seconds
from .progress_stats import total_completed, total_minutes_watched, completion_stats

__all__ = [
    "ProgressStore",
    "RemoteProgressClient",
    "SyncEngine",
    "merge_progress",
    "clamp_seconds",
    "total_completed",
    "total_minutes_watched",
    "completion_stats",
]
