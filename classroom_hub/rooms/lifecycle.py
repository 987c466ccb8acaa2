"""Join, leave, disconnect and close for classroom rooms.

Every path that removes a connection goes through `_teardown`, which is
safe to run for a connection whose seat, progress or room is already gone.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from classroom_hub.realtime.events.rooms import build_membership_payload
from classroom_hub.realtime.events.rooms import build_room_closed_payload
from classroom_hub.realtime.events.rooms import build_seat_update_payload
from classroom_hub.rooms.errors import InvalidSeat
from classroom_hub.rooms.errors import RoomFull
from classroom_hub.rooms.errors import RoomNotFound
from classroom_hub.rooms.errors import SeatOccupied
from classroom_hub.rooms.state import Role

if TYPE_CHECKING:
    from classroom_hub.realtime.transport import Transport
    from classroom_hub.rooms.registry import ConnectionRegistry
    from classroom_hub.rooms.registry import ProgressStore
    from classroom_hub.rooms.registry import RoomRegistry
    from classroom_hub.rooms.state import Connection
    from classroom_hub.rooms.state import RoomState

logger = logging.getLogger(__name__)


def check_seat_available(
    state: RoomState,
    seat_index: int,
    holder: str | None = None,
) -> None:
    if not state.is_valid_seat(seat_index):
        raise InvalidSeat
    if state.is_occupied(seat_index) and state.seat_assignments.get(seat_index) != holder:
        raise SeatOccupied


class LifecycleManager:
    def __init__(
        self,
        transport: Transport,
        connections: ConnectionRegistry,
        rooms: RoomRegistry,
        progress: ProgressStore,
    ) -> None:
        self.transport = transport
        self.connections = connections
        self.rooms = rooms
        self.progress = progress

    async def join(self, sid: str, data: dict[str, Any]) -> None:
        if data["role"] is Role.HOST:
            await self._join_as_host(sid, data)
        else:
            await self._join_as_student(sid, data)

    async def _join_as_host(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        await self._detach_previous(sid)

        if room in self.rooms:
            logger.info("Room %s already exists, overwriting", room)
        self.rooms.create(room, data.get("max_seats"), data.get("content_id"))

        await self.transport.enter_room(sid, room)
        self.connections.register(sid, Role.HOST, room, data.get("username") or None)
        logger.info(
            "Host %s created room %s with recipe %s",
            sid,
            room,
            data.get("content_id"),
        )

    async def _join_as_student(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        seat_index = data.get("seat_index")

        state = self.rooms.get(room)
        if state is None:
            raise RoomNotFound
        # A connection re-joining its own room does not count against capacity
        # and may ask for the seat it already holds.
        others = [member for member in self.transport.members(room) if member != sid]
        if len(others) >= state.capacity:
            raise RoomFull
        if seat_index is not None:
            check_seat_available(state, seat_index, holder=sid)

        await self._detach_previous(sid)

        # The seat is claimed before the connection enters the broadcast group.
        if seat_index is not None:
            state.claim_seat(seat_index, sid)
        await self.transport.enter_room(sid, room)
        connection = self.connections.register(
            sid,
            Role.STUDENT,
            room,
            data.get("username"),
            seat_index,
        )

        await self.transport.emit(
            "message",
            build_membership_payload(connection, joined=True),
            to=room,
        )
        await self.transport.emit("seatUpdate", build_seat_update_payload(state), to=room)
        logger.info(
            "Student %s joined room %s at seat %s",
            connection.username,
            room,
            seat_index,
        )

    async def _detach_previous(self, sid: str) -> None:
        """Drop an earlier membership so a connection never sits in two rooms."""

        previous = self.connections.lookup(sid)
        if previous is not None:
            logger.info("Connection %s leaves room %s to rejoin", sid, previous.room)
            await self._teardown(previous)

    async def _teardown(self, connection: Connection) -> None:
        sid = connection.connection_id
        room = connection.room

        state = self.rooms.get(room)
        if state is not None and state.release_seat(connection.seat_index, sid):
            await self.transport.emit(
                "seatUpdate",
                build_seat_update_payload(state),
                to=room,
            )

        self.progress.discard(sid)
        self.connections.remove(sid)
        await self.transport.leave_room(sid, room)

        await self.transport.emit(
            "message",
            build_membership_payload(connection, joined=False),
            to=room,
        )

    async def disconnect(self, sid: str) -> None:
        connection = self.connections.lookup(sid)
        if connection is None:
            return
        await self._teardown(connection)
        logger.info(
            "User %s left room %s from seat %s",
            connection.username,
            connection.room,
            connection.seat_index,
        )

    async def leave(self, sid: str, data: dict[str, Any]) -> None:
        room = data["room"]
        connection = self.connections.lookup(sid)
        if connection is None or connection.room != room:
            logger.info("Connection %s is not a member of room %s", sid, room)
            return
        if not self.transport.members(room):
            logger.info("Room %s has no members", room)
            return

        await self._teardown(connection)
        if not self.transport.members(room):
            self.rooms.delete(room)
            logger.info("Room %s is empty and was removed", room)
        logger.info("Connection %s left room %s", sid, room)

    async def close(self, sid: str, data: dict[str, Any]) -> list[str]:
        """Close a room on behalf of a host.

        Returns the connections that must be disconnected; the caller does
        that once it is safe for their disconnect callbacks to run.
        """

        connection = self.connections.lookup(sid)
        if connection is None or not connection.is_host:
            logger.debug("Ignoring closeRoom from non-host %s", sid)
            return []
        room = data.get("room") or connection.room

        self.rooms.delete(room)
        members = self.transport.members(room)
        self.progress.discard_many(members)

        await self.transport.emit("message", build_room_closed_payload(room), to=room)
        logger.info("Room %s closed by host %s", room, sid)
        return members
