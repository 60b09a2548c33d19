# tasks/heartbeat.py
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lessonsync.services.sync_service import SyncEngine, clamp_seconds

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL_SECONDS = 12
PROGRESS_PULL_INTERVAL_MINUTES = 15

PositionSampler = Callable[[], float]


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler()


def schedule_jobs(scheduler: AsyncIOScheduler, engine: SyncEngine) -> None:
    # Periodic reconcile on top of the pull done at startup
    scheduler.add_job(
        engine.pull_and_merge,
        trigger=IntervalTrigger(minutes=PROGRESS_PULL_INTERVAL_MINUTES),
        id="pull_progress",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )


class HeartbeatState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class HeartbeatScheduler:
    """
    Reports playback position for one lesson-viewing session.

    While active, a recurring job samples the position every `interval`
    seconds and pushes a heartbeat only when the position moved past the last
    reported value. complete() cancels the job and always sends the
    completion report.
    """

    def __init__(
        self,
        lesson_id: str,
        engine: SyncEngine,
        scheduler: AsyncIOScheduler,
        interval: float = HEARTBEAT_INTERVAL_SECONDS,
    ):
        self.lesson_id = lesson_id
        self.interval = interval
        self.last_sent_seconds = 0
        self._engine = engine
        self._scheduler = scheduler
        self._job_id = f"heartbeat:{lesson_id}:{uuid4().hex}"
        self._job = None
        self._sampler: Optional[PositionSampler] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> HeartbeatState:
        return HeartbeatState.ACTIVE if self._job is not None else HeartbeatState.IDLE

    @property
    def job_id(self) -> str:
        return self._job_id

    async def start(self, get_current_seconds: PositionSampler) -> None:
        self.stop()

        first = clamp_seconds(get_current_seconds())
        self._sampler = get_current_seconds
        self.last_sent_seconds = first
        self._job = self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval),
            id=self._job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.debug(f"Heartbeat started for lesson {self.lesson_id} at {first}s")

        async with self._lock:
            await self._engine.push_heartbeat(self.lesson_id, first)

    def stop(self) -> None:
        job, self._job = self._job, None
        self._sampler = None
        if job is None:
            return
        try:
            job.remove()
        except JobLookupError:
            pass
        logger.debug(f"Heartbeat stopped for lesson {self.lesson_id}")

    async def complete(self, final_seconds: float) -> None:
        self.stop()
        final = clamp_seconds(final_seconds)
        async with self._lock:
            await self._engine.push_completion(self.lesson_id, final)
        logger.info(f"Lesson {self.lesson_id} completion reported at {final}s")

    async def _tick(self) -> None:
        async with self._lock:
            sampler = self._sampler
            if self._job is None or sampler is None:
                return
            try:
                current = clamp_seconds(sampler())
            except Exception as e:
                logger.warning(f"Position sampler failed for lesson {self.lesson_id}: {str(e)}")
                return

            # after a backward seek, stay quiet until the old high-water mark is passed
            if current <= self.last_sent_seconds:
                return

            self.last_sent_seconds = current
            await self._engine.push_heartbeat(self.lesson_id, current)
