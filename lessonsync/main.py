# main.py
import logging
from typing import Any, Optional

from lessonsync.auth.token_provider import TokenStore
from lessonsync.config import Settings, load_settings
from lessonsync.deps import create_http_session, create_redis_client, create_storage
from lessonsync.logging_config import setup_logging
from lessonsync.repos.snapshot_storage import SnapshotStorage
from lessonsync.services.progress_store import ProgressStore
from lessonsync.services.remote_progress import RemoteProgressClient
from lessonsync.services.sync_service import ErrorHook, SyncEngine
from lessonsync.services.viewing_session import ViewingSession
from lessonsync.tasks.heartbeat import HeartbeatScheduler, PositionSampler, create_scheduler, schedule_jobs

logger = logging.getLogger(__name__)


class ProgressRuntime:
    """
    Builds the progress engine once and hands out references.

    Construct one at startup and pass it (or its parts) to whatever needs it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[SnapshotStorage] = None,
        session: Optional[Any] = None,
        token_store: Optional[TokenStore] = None,
        on_error: Optional[ErrorHook] = None,
    ):
        self.settings = settings or load_settings()
        self.redis = None
        if storage is None:
            if self.settings.STORAGE_BACKEND == "redis":
                self.redis = create_redis_client(self.settings.REDIS_URL)
            storage = create_storage(self.settings, self.redis)

        self.storage = storage
        self.store = ProgressStore(storage)
        self.token_store = token_store or TokenStore(self.settings.AUTH_TOKEN)
        self.session = session or create_http_session()
        self.client = RemoteProgressClient(
            self.settings.API_BASE_URL,
            self.token_store,
            session=self.session,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
        )
        self.engine = SyncEngine(self.store, self.client, on_error=on_error)
        self.scheduler = create_scheduler()

    def heartbeat_for(self, lesson_id: str) -> HeartbeatScheduler:
        return HeartbeatScheduler(lesson_id, self.engine, self.scheduler)

    def viewing_session(self, lesson_id: str, sampler: PositionSampler, duration: Optional[float] = None) -> ViewingSession:
        return ViewingSession(lesson_id, self.store, self.engine, self.scheduler, sampler, duration=duration)

    def logout(self) -> None:
        self.token_store.clear()
        self.store.reset()
        logger.info("Logged out; local progress cleared")

    async def startup(self, pull: bool = True) -> None:
        setup_logging(log_level=self.settings.log_level, log_file=self.settings.LOG_FILE)
        logger.info("Starting progress engine...")

        try:
            schedule_jobs(self.scheduler, self.engine)
            self.scheduler.start()
            logger.info("Scheduler started")
        except Exception as e:
            logger.error(f"Failed to start scheduler: {str(e)}")

        if pull:
            synced = await self.engine.pull_and_merge()
            logger.info("Initial progress sync completed" if synced else "Initial progress sync skipped")

        logger.info("Progress engine startup completed")

    async def shutdown(self) -> None:
        logger.info("Starting progress engine shutdown...")

        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
                logger.info("Scheduler shutdown completed")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {str(e)}")

        try:
            self.session.close()
            logger.info("HTTP session closed")
        except Exception as e:
            logger.error(f"Error closing HTTP session: {str(e)}")

        try:
            if self.redis is not None:
                self.redis.close()
                logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {str(e)}")

        logger.info("Progress engine shutdown completed")
