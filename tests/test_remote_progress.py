"""Tests for the remote progress client against the fake progress API."""

from unittest.mock import MagicMock

import pytest
import requests

from fake_server import BASE_URL
from lessonsync.auth.token_provider import StaticTokenProvider, TokenStore
from lessonsync.exceptions import (
    BadStatus,
    DecodeError,
    EncodeError,
    NoToken,
    ProgressSyncError,
    Transport,
    Unauthorized,
)
from lessonsync.services.remote_progress import RemoteProgressClient, lesson_progress_path


def _mock_session(status_code=200, content=b'{"progress": []}'):
    session = MagicMock()
    session.request.return_value = MagicMock(
        status_code=status_code, content=content, text=content.decode("utf-8", "replace"),
    )
    return session


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_parses_rows(self, remote_client, fake_api):
        fake_api.state.progress = {
            "L1": {"seconds_watched": 120, "completed": False, "updated_at": None},
            "L2": {"seconds_watched": 10, "completed": True, "updated_at": "2026-01-08T10:00:00Z"},
        }

        rows = await remote_client.fetch_all()

        by_id = {r.lesson_id: r for r in rows}
        assert by_id["L1"].seconds_watched == 120
        assert by_id["L1"].completed is False
        assert by_id["L2"].completed is True
        assert by_id["L2"].updated_at == "2026-01-08T10:00:00Z"

    @pytest.mark.asyncio
    async def test_empty_progress(self, remote_client):
        assert await remote_client.fetch_all() == []

    @pytest.mark.asyncio
    async def test_lesson_ids_are_opaque(self, remote_client, fake_api):
        fake_api.state.progress = {
            " L1 ": {"seconds_watched": 5, "completed": False, "updated_at": None},
            "": {"seconds_watched": 7, "completed": True, "updated_at": None},
        }

        rows = await remote_client.fetch_all()

        assert sorted(r.lesson_id for r in rows) == ["", " L1 "]

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        session = _mock_session()
        client = RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=session)

        await client.fetch_all()

        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == f"{BASE_URL}/progress"
        assert session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_unauthorized(self, api_session):
        client = RemoteProgressClient(BASE_URL, TokenStore("wrong-token"), session=api_session)
        with pytest.raises(Unauthorized):
            await client.fetch_all()

    @pytest.mark.asyncio
    async def test_bad_status(self, remote_client, fake_api):
        fake_api.state.fail_status = 503

        with pytest.raises(BadStatus) as exc_info:
            await remote_client.fetch_all()

        assert exc_info.value.status_code == 503
        assert "Injected failure" in exc_info.value.body

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        b"not json",
        b'{"items": []}',
        b'{"progress": [{"lesson_id": "L1"}]}',
        b"",
    ])
    async def test_decode_error(self, content):
        client = RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=_mock_session(content=content))
        with pytest.raises(DecodeError):
            await client.fetch_all()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("connection refused")
        client = RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=session)

        with pytest.raises(Transport):
            await client.fetch_all()

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        session = MagicMock()
        session.request.side_effect = requests.Timeout("read timed out")
        client = RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=session, timeout=3)

        with pytest.raises(Transport):
            await client.fetch_all()
        assert session.request.call_args.kwargs["timeout"] == 3.0


class TestNoToken:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_fails_before_network(self, token):
        session = _mock_session()
        client = RemoteProgressClient(BASE_URL, TokenStore(token), session=session)

        with pytest.raises(NoToken):
            await client.fetch_all()
        with pytest.raises(NoToken):
            await client.push("L1", 10)

        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_cleared_after_login(self):
        session = _mock_session()
        tokens = TokenStore("abc")
        client = RemoteProgressClient(BASE_URL, tokens, session=session)

        tokens.clear()

        with pytest.raises(NoToken):
            await client.fetch_all()


class TestPush:
    @pytest.mark.asyncio
    async def test_heartbeat_omits_completed(self, remote_client, fake_api):
        await remote_client.push("L1", 30)

        assert fake_api.state.pushes == [("L1", {"seconds_watched": 30})]

    @pytest.mark.asyncio
    async def test_completion_body(self, remote_client, fake_api):
        await remote_client.push("L1", 300, completed=True)

        assert fake_api.state.pushes == [("L1", {"seconds_watched": 300, "completed": True})]
        assert fake_api.state.progress["L1"]["completed"] is True

    @pytest.mark.asyncio
    async def test_post_url_and_json(self):
        session = _mock_session(status_code=204, content=b"")
        client = RemoteProgressClient(BASE_URL + "/", StaticTokenProvider("abc"), session=session)

        await client.push("L1", 45, completed=False)

        method, url = session.request.call_args.args
        assert method == "POST"
        assert url == f"{BASE_URL}/lessons/L1/progress"
        assert session.request.call_args.kwargs["json"] == {"seconds_watched": 45, "completed": False}

    @pytest.mark.asyncio
    async def test_negative_seconds_is_encode_error(self):
        session = _mock_session()
        client = RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=session)

        with pytest.raises(EncodeError):
            await client.push("L1", -1)
        session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_push_unauthorized(self, api_session):
        client = RemoteProgressClient(BASE_URL, TokenStore("wrong-token"), session=api_session)
        with pytest.raises(Unauthorized):
            await client.push("L1", 5)

    @pytest.mark.asyncio
    async def test_push_bad_status(self):
        client = RemoteProgressClient(
            BASE_URL, StaticTokenProvider("abc"), session=_mock_session(status_code=500, content=b"boom"),
        )
        with pytest.raises(BadStatus) as exc_info:
            await client.push("L1", 5)
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"


def test_errors_share_base_class():
    for exc in (NoToken(), Unauthorized(), Transport("x"), BadStatus(500), DecodeError("x"), EncodeError("x")):
        assert isinstance(exc, ProgressSyncError)


def test_lesson_path_is_quoted():
    assert lesson_progress_path("day 1/intro") == "/lessons/day%201%2Fintro/progress"


def test_close_only_owned_session():
    injected = MagicMock()
    RemoteProgressClient(BASE_URL, StaticTokenProvider("abc"), session=injected).close()
    injected.close.assert_not_called()


def test_requires_base_url():
    with pytest.raises(ValueError):
        RemoteProgressClient("", StaticTokenProvider("abc"))
