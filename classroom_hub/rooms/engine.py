"""Event router for classroom rooms.

`ClassroomEngine.dispatch` is the single entry point for inbound events. It
validates the payload, runs the handler under one lock so handlers never
interleave, and turns every failure into a ``message`` event addressed to
the originating connection only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from typing import Any

from rest_framework.exceptions import ValidationError

from classroom_hub.realtime.events.rooms import build_danger_alert_payload
from classroom_hub.realtime.events.rooms import build_receive_json_payload
from classroom_hub.realtime.events.rooms import build_room_info_payload
from classroom_hub.realtime.events.rooms import build_room_status_payload
from classroom_hub.realtime.events.rooms import build_seat_changed_payload
from classroom_hub.realtime.events.rooms import build_seat_update_payload
from classroom_hub.realtime.events.rooms import build_session_ended_payload
from classroom_hub.realtime.events.rooms import build_session_response_payload
from classroom_hub.realtime.events.rooms import build_session_started_payload
from classroom_hub.realtime.events.rooms import build_student_progress_payload
from classroom_hub.realtime.events.rooms import timestamp
from classroom_hub.rooms.api.serializers import ChangeSeatSerializer
from classroom_hub.rooms.api.serializers import DangerAlertSerializer
from classroom_hub.rooms.api.serializers import JoinSerializer
from classroom_hub.rooms.api.serializers import LeaveRoomSerializer
from classroom_hub.rooms.api.serializers import OptionalRoomEventSerializer
from classroom_hub.rooms.api.serializers import RoomEventSerializer
from classroom_hub.rooms.api.serializers import SendJsonSerializer
from classroom_hub.rooms.api.serializers import SessionResponseSerializer
from classroom_hub.rooms.api.serializers import StartSessionSerializer
from classroom_hub.rooms.api.serializers import StudentProgressSerializer
from classroom_hub.rooms.api.serializers import validate_event
from classroom_hub.rooms.errors import ClassroomError
from classroom_hub.rooms.errors import RoomNotFound
from classroom_hub.rooms.errors import Unauthorized
from classroom_hub.rooms.lifecycle import LifecycleManager
from classroom_hub.rooms.lifecycle import check_seat_available
from classroom_hub.rooms.registry import ConnectionRegistry
from classroom_hub.rooms.registry import ProgressStore
from classroom_hub.rooms.registry import RoomRegistry
from classroom_hub.rooms.state import ProgressRecord

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from collections.abc import Callable

    from rest_framework.serializers import Serializer

    from classroom_hub.realtime.transport import Transport
    from classroom_hub.rooms.state import Connection

    Handler = Callable[[str, dict[str, Any]], Awaitable[Any]]

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEATS = 5
DEFAULT_DANGER_ALERT_MESSAGE = "A dangerous situation has been reported"


class ClassroomEngine:
    def __init__(
        self,
        transport: Transport,
        *,
        default_max_seats: int = DEFAULT_MAX_SEATS,
        danger_alert_message: str = DEFAULT_DANGER_ALERT_MESSAGE,
    ) -> None:
        self.transport = transport
        self.danger_alert_message = danger_alert_message
        self.connections = ConnectionRegistry()
        self.rooms = RoomRegistry(default_max_seats)
        self.progress = ProgressStore()
        self.lifecycle = LifecycleManager(
            transport,
            self.connections,
            self.rooms,
            self.progress,
        )
        self._lock = asyncio.Lock()
        self._routes: dict[str, tuple[type[Serializer], Handler]] = {
            "getRoomInfo": (RoomEventSerializer, self.get_room_info),
            "join": (JoinSerializer, self.lifecycle.join),
            "startSession": (StartSessionSerializer, self.start_session),
            "endSession": (RoomEventSerializer, self.end_session),
            "sessionResponse": (
                SessionResponseSerializer,
                self.session_response,
            ),
            "studentProgress": (
                StudentProgressSerializer,
                self.student_progress,
            ),
            "dangerAlert": (DangerAlertSerializer, self.danger_alert),
            "sendJson": (SendJsonSerializer, self.send_json),
            "changeSeat": (ChangeSeatSerializer, self.change_seat),
            "leave-room": (LeaveRoomSerializer, self.lifecycle.leave),
            "getRoomStatus": (RoomEventSerializer, self.get_room_status),
            "closeRoom": (
                OptionalRoomEventSerializer,
                self.lifecycle.close,
            ),
        }

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(self._routes)

    async def dispatch(self, sid: str, event: str, data: Any) -> None:
        route = self._routes.get(event)
        if route is None:
            logger.warning("Unknown event %s from %s", event, sid)
            return
        serializer_class, handler = route

        evicted: list[str] = []
        async with self._lock:
            try:
                payload = validate_event(serializer_class, data)
                result = await handler(sid, payload)
            except ValidationError as exc:
                logger.info("Rejected %s from %s: %s", event, sid, exc.detail)
                await self._reply(
                    sid,
                    {
                        "type": "error",
                        "message": f"Invalid {event} payload",
                        "errors": exc.detail,
                    },
                )
            except ClassroomError as exc:
                logger.info("%s from %s failed: %s", event, sid, exc.message_type)
                await self._reply(sid, exc.as_payload())
            except Exception:
                logger.exception("Unhandled error while handling %s from %s", event, sid)
                await self._reply(
                    sid,
                    {"type": "error", "message": "Internal server error"},
                )
            else:
                if event == "closeRoom":
                    evicted = result

        # Evicted connections re-enter through `disconnect`, so the lock
        # must be released first.
        for member in evicted:
            await self.transport.disconnect(member)

    async def disconnect(self, sid: str) -> None:
        async with self._lock:
            try:
                await self.lifecycle.disconnect(sid)
            except Exception:
                logger.exception("Teardown failed for %s", sid)

    async def _reply(self, sid: str, payload: dict[str, Any]) -> None:
        await self.transport.emit("message", payload, to=sid)

    def _host_of(self, sid: str, room: str) -> Connection | None:
        connection = self.connections.lookup(sid)
        if connection is None or not connection.is_host or connection.room != room:
            return None
        return connection

    async def get_room_info(self, sid: str, data: dict[str, Any]) -> None:
        state = self.rooms.get(data["room"])
        await self.transport.emit("roomInfo", build_room_info_payload(state), to=sid)

    async def start_session(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        state = self.rooms.get(room)
        if self._host_of(sid, room) is None or state is None:
            logger.debug("Ignoring startSession for %s from %s", room, sid)
            return

        state.session_active = True
        state.content_id = data["content_id"]
        logger.info("Session started in room %s with recipe %s", room, state.content_id)
        await self.transport.emit(
            "sessionStarted",
            build_session_started_payload(room, state.content_id),
            to=room,
        )

    async def end_session(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        state = self.rooms.get(room)
        if self._host_of(sid, room) is None or state is None:
            logger.debug("Ignoring endSession for %s from %s", room, sid)
            return

        state.session_active = False
        logger.info("Session ended in room %s", room)
        await self.transport.emit(
            "sessionEnded",
            build_session_ended_payload(room),
            to=room,
        )

    async def _relay_to_hosts(
        self,
        sid: str,
        event: str,
        data: dict[str, Any],
        build: Callable[[], dict[str, Any]],
    ) -> None:
        # `userId` is whatever the client sent; it is relayed as-is.
        if data["user_id"] != sid:
            logger.warning(
                "%s from %s carries userId %s",
                event,
                sid,
                data["user_id"],
            )
        for host in self.connections.hosts_among(self.transport.members(data["room"])):
            await self.transport.emit(event, build(), to=host)

    async def session_response(self, sid: str, data: dict[str, Any]) -> None:
        logger.info(
            "Session response from %s: %s - %s",
            data["user_id"],
            data["type"],
            data["status"],
        )
        await self._relay_to_hosts(
            sid,
            "sessionResponse",
            data,
            lambda: build_session_response_payload(data),
        )

    async def student_progress(self, sid: str, data: dict[str, Any]) -> None:
        logger.debug("Student progress update: %s", data)
        self.progress.upsert(
            data["user_id"],
            ProgressRecord(
                current_step=data["current_step"],
                content_id=data.get("content_id"),
                last_update=timestamp(),
            ),
        )
        await self._relay_to_hosts(
            sid,
            "studentProgress",
            data,
            lambda: build_student_progress_payload(data),
        )

    async def danger_alert(self, sid: str, data: dict[str, Any]) -> None:
        logger.warning("Danger alert received: %s", data)
        await self._relay_to_hosts(
            sid,
            "dangerAlert",
            data,
            lambda: build_danger_alert_payload(data, self.danger_alert_message),
        )

    async def send_json(self, sid: str, data: dict[str, Any]) -> None:
        logger.debug(
            "Received JSON data for room %s from %s at seat %s",
            data["room"],
            data["user_id"],
            data.get("seat_index"),
        )
        await self._relay_to_hosts(
            sid,
            "receiveJson",
            data,
            lambda: build_receive_json_payload(data),
        )

    async def change_seat(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        new_seat_index = data["new_seat_index"]

        connection = self.connections.lookup(sid)
        if connection is None or not connection.is_student:
            msg = "Only students can change seats"
            raise Unauthorized(msg)
        state = self.rooms.get(room)
        if state is None:
            raise RoomNotFound
        if connection.room != room:
            msg = "Not a member of this room"
            raise Unauthorized(msg)
        check_seat_available(state, new_seat_index)

        old_seat_index = connection.seat_index
        state.release_seat(old_seat_index, sid)
        state.claim_seat(new_seat_index, sid)
        self.connections.update_seat(sid, new_seat_index)

        await self.transport.emit(
            "message",
            build_seat_changed_payload(connection, old_seat_index),
            to=room,
        )
        await self.transport.emit("seatUpdate", build_seat_update_payload(state), to=room)
        logger.info(
            "User %s changed seat from %s to %s",
            connection.username,
            old_seat_index,
            new_seat_index,
        )

    async def get_room_status(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        state = self.rooms.get(room)
        if self._host_of(sid, room) is None or state is None:
            logger.debug("Ignoring getRoomStatus for %s from %s", room, sid)
            return
        await self.transport.emit(
            "roomStatus",
            build_room_status_payload(room, state),
            to=sid,
        )

    def stats(self) -> dict[str, int]:
        return {"rooms": len(self.rooms), "connections": len(self.connections)}
