from .progress_schema import (
    LessonState,
    LessonProgressRecord,
    ProgressSnapshot,
    RemoteProgressRow,
    RemoteProgressResponse,
    ProgressPushBody,
)

__all__ = [
    "LessonState",
    "LessonProgressRecord",
    "ProgressSnapshot",
    "RemoteProgressRow",
    "RemoteProgressResponse",
    "ProgressPushBody",
]
