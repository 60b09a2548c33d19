# services/progress_store.py
"""
Local progress store.

Single read/write path for lesson progress. Holds the snapshot in memory and
writes it through the injected SnapshotStorage after every mutation.
"""

import logging
import math
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from lessonsync.repos.snapshot_storage import SnapshotStorage
from lessonsync.schemas.progress_schema import LessonProgressRecord, LessonState, ProgressSnapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressStore:
    def __init__(self, storage: SnapshotStorage, clock: Optional[Clock] = None):
        self._storage = storage
        self._clock = clock or utc_now
        self._lock = threading.RLock()
        self._snapshot = self._load()

    def _load(self) -> ProgressSnapshot:
        try:
            snapshot = self._storage.load()
        except Exception as e:
            logger.error(f"Failed to load progress snapshot: {str(e)}")
            snapshot = None
        if snapshot is None:
            return ProgressSnapshot()
        logger.info(f"Loaded progress for {len(snapshot.lesson_progress)} lessons")
        return snapshot

    def _save(self) -> None:
        # in-memory state stays authoritative even if the write fails
        try:
            self._storage.save(self._snapshot)
        except Exception as e:
            logger.error(f"Failed to persist progress snapshot: {str(e)}")

    def _copy_or_new(self, lesson_id: str) -> LessonProgressRecord:
        # live records are never edited in place; mutations swap in a new one
        record = self._snapshot.lesson_progress.get(lesson_id)
        return record.model_copy() if record is not None else LessonProgressRecord(lesson_id=lesson_id)

    @contextmanager
    def transaction(self) -> Iterator["ProgressStore"]:
        """Hold the store lock across a read-modify-write sequence."""
        with self._lock:
            yield self

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def mark_started(self, lesson_id: str) -> None:
        with self._lock:
            if lesson_id in self._snapshot.lesson_progress:
                return
            self._snapshot.lesson_progress[lesson_id] = LessonProgressRecord(
                lesson_id=lesson_id,
                state=LessonState.IN_PROGRESS,
                last_position_seconds=0.0,
                started_at=self._clock(),
            )
            self._save()

    def update_position(self, lesson_id: str, position: float) -> None:
        position = float(position)
        # JSON has no inf/nan; one such value would make the whole snapshot unloadable
        if not math.isfinite(position):
            logger.warning(f"Ignoring non-finite position {position} for lesson {lesson_id}")
            return

        with self._lock:
            record = self._copy_or_new(lesson_id)
            if record.started_at is None:
                record.started_at = self._clock()

            record.last_position_seconds = max(0.0, position)
            if record.state != LessonState.COMPLETED:
                record.state = LessonState.IN_PROGRESS

            self._snapshot.lesson_progress[lesson_id] = record
            self._save()

    def mark_completed(self, lesson_id: str) -> None:
        with self._lock:
            record = self._copy_or_new(lesson_id)
            record.state = LessonState.COMPLETED
            if record.completed_at is None:
                record.completed_at = self._clock()

            self._snapshot.completed_lesson_ids.add(lesson_id)
            self._snapshot.lesson_progress[lesson_id] = record
            self._save()

    def overwrite(self, snapshot: ProgressSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot.model_copy(deep=True)
            self._save()

    def reset(self) -> None:
        with self._lock:
            self._snapshot = ProgressSnapshot()
            try:
                self._storage.clear()
            except Exception as e:
                logger.error(f"Failed to clear persisted progress: {str(e)}")
            self._save()
        logger.info("Progress reset")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_progress(self, lesson_id: str) -> Optional[LessonProgressRecord]:
        with self._lock:
            record = self._snapshot.lesson_progress.get(lesson_id)
            return record.model_copy() if record is not None else None

    def is_completed(self, lesson_id: str) -> bool:
        with self._lock:
            return lesson_id in self._snapshot.completed_lesson_ids

    def get_lesson_state(self, lesson_id: str) -> LessonState:
        with self._lock:
            record = self._snapshot.lesson_progress.get(lesson_id)
            return record.state if record is not None else LessonState.NOT_STARTED

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot.model_copy(deep=True)
