# schemas/progress_schema.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Set
from datetime import datetime
from enum import Enum


class LessonState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LessonProgressRecord(BaseModel):
    lesson_id: str
    state: LessonState = LessonState.NOT_STARTED
    # furthest point reached, in seconds
    last_position_seconds: float = Field(default=0.0, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.state == LessonState.COMPLETED


class ProgressSnapshot(BaseModel):
    completed_lesson_ids: Set[str] = Field(default_factory=set)
    lesson_progress: Dict[str, LessonProgressRecord] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.completed_lesson_ids and not self.lesson_progress


# Wire format (GET /progress, POST /lessons/{lesson_id}/progress)

class RemoteProgressRow(BaseModel):
    lesson_id: str
    seconds_watched: int
    completed: bool
    updated_at: Optional[str] = None


class RemoteProgressResponse(BaseModel):
    progress: List[RemoteProgressRow]


class ProgressPushBody(BaseModel):
    seconds_watched: int = Field(..., ge=0)
    completed: Optional[bool] = None
