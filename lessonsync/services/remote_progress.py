# services/remote_progress.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from lessonsync.auth.token_provider import TokenProvider
from lessonsync.exceptions import BadStatus, DecodeError, EncodeError, NoToken, Transport, Unauthorized
from lessonsync.schemas.progress_schema import ProgressPushBody, RemoteProgressResponse, RemoteProgressRow

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


def progress_path() -> str:
    return "/progress"


def lesson_progress_path(lesson_id: str) -> str:
    return f"/lessons/{quote(lesson_id, safe='')}/progress"


class RemoteProgressClient:
    """
    Stateless adapter for the progress endpoints.

    Every call needs a bearer token from the token provider; without one the
    call fails with NoToken before anything goes on the wire. All failures are
    raised as ProgressSyncError subclasses and left to the caller.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        session: Optional[Any] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not base_url:
            raise ValueError("Remote progress client requires a base URL")
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._timeout = float(timeout)

    async def fetch_all(self) -> List[RemoteProgressRow]:
        response = await self._request("GET", progress_path())
        try:
            return RemoteProgressResponse.model_validate_json(response.content).progress
        except ValidationError as e:
            raise DecodeError(f"Malformed progress response: {str(e)}") from e

    async def push(self, lesson_id: str, seconds_watched: int, completed: Optional[bool] = None) -> None:
        body = self._encode(seconds_watched, completed)
        await self._request("POST", lesson_progress_path(lesson_id), body=body)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _encode(self, seconds_watched: int, completed: Optional[bool]) -> Dict[str, Any]:
        try:
            body = ProgressPushBody(seconds_watched=seconds_watched, completed=completed)
            return body.model_dump(mode="json", exclude_none=True)
        except ValidationError as e:
            raise EncodeError(f"Cannot encode progress body: {str(e)}") from e

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider.current_token()
        if not token:
            raise NoToken()
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None):
        headers = self._headers()
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {"headers": headers, "timeout": self._timeout}
        if body is not None:
            kwargs["json"] = body

        try:
            response = await run_in_threadpool(self._session.request, method, url, **kwargs)
        except requests.RequestException as e:
            raise Transport(f"{method} {path} failed: {str(e)}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        self._validate(response)
        return response

    @staticmethod
    def _validate(response) -> None:
        if response.status_code == 401:
            raise Unauthorized()
        if not 200 <= response.status_code < 300:
            raise BadStatus(response.status_code, response.text)
