from unittest import mock

import pytest
from rest_framework_simplejwt.tokens import AccessToken
from socketio.exceptions import ConnectionRefusedError as SocketRefused

from classroom_hub.realtime import socketio as realtime

pytestmark = pytest.mark.asyncio


def access_token() -> str:
    token = AccessToken()
    token["id"] = "7"
    token["username"] = "host-user"
    return str(token)


async def test_every_room_event_is_wired():
    handlers = realtime.sio.handlers["/"]

    for event in realtime.engine.events:
        assert event in handlers
    assert "connect" in handlers
    assert "disconnect" in handlers


async def test_connect_without_token_is_refused():
    with pytest.raises(SocketRefused) as excinfo:
        await realtime.connect("sid-1", {}, None)

    assert excinfo.value.error_args["message"] == "unauthorized"


async def test_connect_with_bad_token_is_refused():
    with pytest.raises(SocketRefused):
        await realtime.connect("sid-1", {}, {"token": "nope"})


async def test_connect_saves_identity(monkeypatch):
    save_session = mock.AsyncMock()
    monkeypatch.setattr(realtime.sio, "save_session", save_session)

    await realtime.connect("sid-1", {}, {"token": access_token()})

    save_session.assert_awaited_once_with(
        "sid-1",
        {"user_id": "7", "username": "host-user"},
    )


async def test_events_are_forwarded_to_engine(monkeypatch):
    dispatch = mock.AsyncMock()
    monkeypatch.setattr(realtime.engine, "dispatch", dispatch)

    await realtime.sio.handlers["/"]["leave-room"]("sid-1", {"roomName": "R1"})

    dispatch.assert_awaited_once_with("sid-1", "leave-room", {"roomName": "R1"})


async def test_disconnect_tears_down(monkeypatch):
    teardown = mock.AsyncMock()
    monkeypatch.setattr(realtime.engine, "disconnect", teardown)

    await realtime.disconnect("sid-1", "client disconnect")

    teardown.assert_awaited_once_with("sid-1")
