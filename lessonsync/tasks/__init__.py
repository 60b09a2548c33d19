from .heartbeat import (
    HeartbeatScheduler,
    HeartbeatState,
    HEARTBEAT_INTERVAL_SECONDS,
    create_scheduler,
    schedule_jobs,
)

__all__ = [
    "HeartbeatScheduler",
    "HeartbeatState",
    "HEARTBEAT_INTERVAL_SECONDS",
    "create_scheduler",
    "schedule_jobs",
]
