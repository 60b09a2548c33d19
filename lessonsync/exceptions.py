# exceptions.py
from typing import Optional


class ProgressSyncError(Exception):
    """Base class for every error raised by the remote progress client."""


class NoToken(ProgressSyncError):
    def __init__(self, message: str = "No auth token available"):
        super().__init__(message)


class Unauthorized(ProgressSyncError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Transport(ProgressSyncError):
    """Connectivity failure or timeout; no HTTP status was received."""


class BadStatus(ProgressSyncError):
    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Unexpected HTTP status {status_code}")


class DecodeError(ProgressSyncError):
    pass


class EncodeError(ProgressSyncError):
    pass
