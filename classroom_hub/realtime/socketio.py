"""Global Socket.IO server for classroom clients.

Current client convention:
- URL base: ws://<host>:3000
- Socket.IO path: settings.SOCKETIO_PATH (default `socket.io`)
- Auth: `auth.token` (JWT access token), `query.token` accepted as fallback

Every room event is forwarded to the process-wide `engine`; nothing in this
module touches room state directly.
"""

from __future__ import annotations

import logging
from typing import Any

import socketio
from django.conf import settings
from socketio.exceptions import ConnectionRefusedError as SocketRefused

from classroom_hub.realtime.identity import extract_token
from classroom_hub.realtime.identity import verify_token
from classroom_hub.realtime.transport import SocketIOTransport
from classroom_hub.rooms.engine import ClassroomEngine
from classroom_hub.rooms.errors import Unauthenticated

logger = logging.getLogger(__name__)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.SOCKETIO_CORS_ALLOWED_ORIGINS,
    logger=False,
    engineio_logger=False,
)

engine = ClassroomEngine(
    SocketIOTransport(sio),
    default_max_seats=settings.CLASSROOM_DEFAULT_MAX_SEATS,
    danger_alert_message=settings.CLASSROOM_DANGER_ALERT_MESSAGE,
)


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    token = extract_token(environ, auth)
    try:
        identity = verify_token(token)
    except Unauthenticated as exc:
        logger.info("Refused connection %s: %s", sid, exc.reason)
        raise SocketRefused(exc.reason) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise SocketRefused(msg) from exc

    await sio.save_session(sid, identity.as_session())
    logger.info("A user(%s) connected as %s", sid, identity.username)


@sio.event
async def disconnect(sid: str, reason: Any = None):
    logger.info("A user(%s) disconnected (%s)", sid, reason)
    await engine.disconnect(sid)


def _forward(event: str):
    async def handler(sid: str, data: Any = None):
        await engine.dispatch(sid, event, data)

    handler.__name__ = f"on_{event.replace('-', '_')}"
    return handler


for _event in engine.events:
    sio.on(_event, handler=_forward(_event))
