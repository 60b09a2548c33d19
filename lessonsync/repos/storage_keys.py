# repos/storage_keys.py
from typing import Optional

DEFAULT_PROGRESS_KEY = "user_progress"


def progress_snapshot_key(namespace: str = DEFAULT_PROGRESS_KEY, user_id: Optional[str] = None) -> str:
    if user_id:
        return f"{namespace}:{user_id}"
    return namespace
