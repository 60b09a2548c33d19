# services/viewing_session.py
"""
Glue between a playing lesson and the progress engine.

Drives the two independent data paths while a lesson is on screen:
- local: store.update_position every few seconds, mark_completed at the end
- remote: a HeartbeatScheduler reporting position to the server
"""

import logging
import math
from typing import Optional
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lessonsync.services.progress_store import ProgressStore
from lessonsync.services.sync_service import SyncEngine
from lessonsync.tasks.heartbeat import HeartbeatScheduler, PositionSampler

logger = logging.getLogger(__name__)

LOCAL_POSITION_INTERVAL_SECONDS = 2
# fraction of the duration after which a lesson counts as watched
COMPLETION_RATIO = 0.95


class ViewingSession:
    def __init__(
        self,
        lesson_id: str,
        store: ProgressStore,
        engine: SyncEngine,
        scheduler: AsyncIOScheduler,
        sampler: PositionSampler,
        duration: Optional[float] = None,
        heartbeat: Optional[HeartbeatScheduler] = None,
    ):
        self.lesson_id = lesson_id
        self.duration = duration
        self.heartbeat = heartbeat or HeartbeatScheduler(lesson_id, engine, scheduler)
        self.finished = False
        self._was_completed = False
        self._store = store
        self._engine = engine
        self._scheduler = scheduler
        self._sampler = sampler
        self._position = 0.0
        self._position_job = None

    @property
    def position(self) -> float:
        return self._position

    async def open(self) -> None:
        self._store.mark_started(self.lesson_id)
        record = self._store.get_progress(self.lesson_id)
        if record is not None:
            self._position = record.last_position_seconds
            self._was_completed = record.is_completed

        await self.heartbeat.start(self._sampler)
        # reopening replaces the previous local job
        self._cancel_position_job()
        self._position_job = self._scheduler.add_job(
            self._poll_position,
            trigger=IntervalTrigger(seconds=LOCAL_POSITION_INTERVAL_SECONDS),
            id=f"position:{self.lesson_id}:{uuid4().hex}",
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Viewing session opened for lesson {self.lesson_id}")

    def should_complete(self, position: float) -> bool:
        if not self.duration or self.duration <= 0:
            return False
        return position / self.duration > COMPLETION_RATIO

    async def record_position(self, seconds: float) -> None:
        position = float(seconds)
        if not math.isfinite(position):
            return
        position = max(0.0, position)
        self._position = position

        # local writes only move forward
        record = self._store.get_progress(self.lesson_id)
        if record is None or position > record.last_position_seconds:
            self._store.update_position(self.lesson_id, position)

        if not (self.finished or self._was_completed) and self.should_complete(position):
            await self.finish(position)

    async def finish(self, final_seconds: Optional[float] = None) -> None:
        if self.finished:
            return
        self.finished = True
        self._cancel_position_job()
        self._store.mark_completed(self.lesson_id)
        await self.heartbeat.complete(self._final_seconds(final_seconds))

    async def close(self) -> None:
        self._cancel_position_job()
        self.heartbeat.stop()
        if self.finished:
            return
        await self._engine.push_heartbeat(self.lesson_id, self._final_seconds(None))
        logger.info(f"Viewing session closed for lesson {self.lesson_id} at {self._position:.0f}s")

    async def _poll_position(self) -> None:
        try:
            position = float(self._sampler())
        except Exception as e:
            logger.warning(f"Position sampler failed for lesson {self.lesson_id}: {str(e)}")
            return
        await self.record_position(position)

    def _final_seconds(self, value: Optional[float]) -> float:
        position = self._position if value is None else float(value)
        if self.duration and self.duration > 0:
            position = min(position, self.duration)
        return max(0.0, position)

    def _cancel_position_job(self) -> None:
        job, self._position_job = self._position_job, None
        if job is None:
            return
        try:
            job.remove()
        except JobLookupError:
            pass
