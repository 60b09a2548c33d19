# services/progress_stats.py
from typing import Any, Dict

from lessonsync.schemas.progress_schema import LessonState, ProgressSnapshot


def total_completed(snapshot: ProgressSnapshot) -> int:
    return len(snapshot.completed_lesson_ids)


def total_minutes_watched(snapshot: ProgressSnapshot) -> int:
    seconds = sum(r.last_position_seconds for r in snapshot.lesson_progress.values())
    return int(seconds) // 60


def completion_stats(snapshot: ProgressSnapshot, total_lessons: int) -> Dict[str, Any]:
    """
    Summary numbers for the home/profile screens.

    Args:
        snapshot: Current progress snapshot
        total_lessons: Number of lessons in the course

    Returns:
        Dictionary with completion stats
    """
    completed = total_completed(snapshot)
    in_progress = sum(
        1 for r in snapshot.lesson_progress.values()
        if r.state == LessonState.IN_PROGRESS
    )
    return {
        "total_lessons": total_lessons,
        "completed": completed,
        "in_progress": in_progress,
        "not_started": max(0, total_lessons - completed - in_progress),
        "completion_percent": round(completed / total_lessons * 100, 1) if total_lessons > 0 else 0,
        "total_minutes_watched": total_minutes_watched(snapshot),
    }
