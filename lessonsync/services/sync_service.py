# services/sync_service.py
"""
Sync engine: reconciles server progress into the local store and reports
playback progress back to the server.

Every remote-facing operation here is best effort. Failures are logged and
handed to the optional on_error hook, never raised to the caller. There is
no retry queue and no token refresh.
"""

import asyncio
import logging
import traceback
from datetime import datetime
from typing import Callable, Iterable, Optional

from lessonsync.exceptions import ProgressSyncError
from lessonsync.schemas.progress_schema import (
    LessonProgressRecord,
    LessonState,
    ProgressSnapshot,
    RemoteProgressRow,
)
from lessonsync.services.progress_store import Clock, ProgressStore, utc_now
from lessonsync.services.remote_progress import RemoteProgressClient

logger = logging.getLogger(__name__)

ErrorHook = Callable[[str, Optional[str], Exception], None]


def clamp_seconds(seconds) -> int:
    """Whole, non-negative seconds; anything unusable counts as 0."""
    try:
        value = int(seconds)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, value)


def merge_progress(local: ProgressSnapshot, rows: Iterable[RemoteProgressRow], now: datetime) -> ProgressSnapshot:
    """
    Merge server rows into a copy of the local snapshot.

    Only lessons present in `rows` are visited; local-only records are carried
    over untouched. Seconds take the max of both sides and completion is
    sticky, so merging the same rows twice changes nothing.
    """
    merged = local.model_copy(deep=True)

    for row in rows:
        lesson_id = row.lesson_id
        server_seconds = float(max(0, row.seconds_watched))

        existing = merged.lesson_progress.get(lesson_id)
        record = existing.model_copy() if existing is not None else LessonProgressRecord(lesson_id=lesson_id)

        merged_seconds = max(record.last_position_seconds, server_seconds)
        merged_completed = row.completed or record.state == LessonState.COMPLETED

        if merged_completed:
            record.state = LessonState.COMPLETED
            if record.completed_at is None:
                record.completed_at = now
        elif merged_seconds > 0 or record.state == LessonState.IN_PROGRESS:
            record.state = LessonState.IN_PROGRESS
        else:
            record.state = LessonState.NOT_STARTED

        if record.started_at is None and merged_seconds > 0:
            record.started_at = now

        record.last_position_seconds = merged_seconds
        merged.lesson_progress[lesson_id] = record

    merged.completed_lesson_ids = {
        lesson_id
        for lesson_id, record in merged.lesson_progress.items()
        if record.state == LessonState.COMPLETED
    }
    return merged


class SyncEngine:
    def __init__(
        self,
        store: ProgressStore,
        client: RemoteProgressClient,
        clock: Optional[Clock] = None,
        on_error: Optional[ErrorHook] = None,
    ):
        self._store = store
        self._client = client
        self._clock = clock or utc_now
        self._on_error = on_error
        self._pull_lock = asyncio.Lock()

    @property
    def store(self) -> ProgressStore:
        return self._store

    async def pull_and_merge(self) -> bool:
        """GET /progress -> merge -> overwrite local. Returns False when nothing changed."""
        async with self._pull_lock:
            try:
                rows = await self._client.fetch_all()
            except ProgressSyncError as e:
                logger.info(f"Progress pull skipped: {e.__class__.__name__}: {str(e)}")
                self._notify("pull", None, e)
                return False
            except Exception as e:
                logger.error(f"Unexpected error pulling progress: {str(e)}")
                logger.error(f"Traceback: {traceback.format_exc()}")
                self._notify("pull", None, e)
                return False

            with self._store.transaction():
                merged = merge_progress(self._store.snapshot(), rows, self._clock())
                self._store.overwrite(merged)

        logger.info(f"Merged {len(rows)} remote progress rows")
        return True

    async def push_heartbeat(self, lesson_id: str, seconds) -> None:
        await self._push("heartbeat", lesson_id, clamp_seconds(seconds), None)

    async def push_completion(self, lesson_id: str, seconds) -> None:
        await self._push("completion", lesson_id, clamp_seconds(seconds), True)

    async def _push(self, operation: str, lesson_id: str, seconds: int, completed: Optional[bool]) -> None:
        try:
            await self._client.push(lesson_id, seconds, completed=completed)
            logger.debug(f"Sent {operation} for lesson {lesson_id} at {seconds}s")
        except ProgressSyncError as e:
            logger.warning(f"Dropped {operation} for lesson {lesson_id}: {e.__class__.__name__}: {str(e)}")
            self._notify(operation, lesson_id, e)
        except Exception as e:
            logger.error(f"Unexpected error sending {operation} for lesson {lesson_id}: {str(e)}")
            logger.error(f"Traceback: {traceback.format_exc()}")
            self._notify(operation, lesson_id, e)

    def _notify(self, operation: str, lesson_id: Optional[str], error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(operation, lesson_id, error)
        except Exception as e:
            logger.error(f"Progress error hook failed: {str(e)}")
