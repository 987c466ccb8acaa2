"""Outbound payloads for room events.

Keys are the camelCase names classroom clients already consume.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from django.utils import timezone

if TYPE_CHECKING:  # import for type checking only
    from classroom_hub.rooms.state import Connection
    from classroom_hub.rooms.state import RoomState


def timestamp() -> str:
    return timezone.now().isoformat()


def build_room_info_payload(state: RoomState | None) -> dict[str, Any]:
    if state is None:
        return {"success": False, "message": "Room not found"}
    return {
        "success": True,
        "maxSeats": state.max_seats,
        "occupiedSeats": state.sorted_seats(),
    }


def build_seat_update_payload(state: RoomState) -> dict[str, Any]:
    return {"occupiedSeats": state.sorted_seats()}


def build_membership_payload(connection: Connection, *, joined: bool) -> dict[str, Any]:
    """`student_joined` / `student_left` notice for the whole room."""

    return {
        "type": "student_joined" if joined else "student_left",
        "status": "joined" if joined else "left",
        "userId": connection.connection_id,
        "role": connection.role.value,
        "room": connection.room,
        "username": connection.username,
        "seatIndex": connection.seat_index,
    }


def build_seat_changed_payload(
    connection: Connection,
    old_seat_index: int | None,
) -> dict[str, Any]:
    return {
        "type": "seat_changed",
        "userId": connection.connection_id,
        "username": connection.username,
        "oldSeatIndex": old_seat_index,
        "newSeatIndex": connection.seat_index,
    }


def build_session_started_payload(room: str, content_id: str | None) -> dict[str, Any]:
    return {"recipeId": content_id, "room": room}


def build_session_ended_payload(room: str) -> dict[str, Any]:
    return {"room": room}


def build_session_response_payload(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "userId": data["user_id"],
        "type": data["type"],
        "status": data["status"],
        "timeStamp": timestamp(),
    }


def build_student_progress_payload(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "userId": data["user_id"],
        "username": data.get("username"),
        "seatIndex": data.get("seat_index"),
        "currentStep": data["current_step"],
        "recipeId": data.get("content_id"),
        "timeStamp": timestamp(),
    }


def build_danger_alert_payload(
    data: dict[str, Any],
    default_message: str,
) -> dict[str, Any]:
    return {
        "userId": data["user_id"],
        "username": data.get("username"),
        "seatIndex": data.get("seat_index"),
        "message": data.get("message") or default_message,
        "timeStamp": timestamp(),
    }


def build_receive_json_payload(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "message": data["message"],
        "payload": data.get("payload"),
        "room": data["room"],
        "userId": data["user_id"],
        "seatIndex": data.get("seat_index"),
        "timeStamp": timestamp(),
    }


def build_room_status_payload(room: str, state: RoomState) -> dict[str, Any]:
    return {
        "room": room,
        "maxClients": state.capacity,
        "occupiedSeats": state.sorted_seats(),
        # Socket.IO serializes with json, so seat keys travel as strings.
        "seatAssignments": {
            str(seat): sid for seat, sid in sorted(state.seat_assignments.items())
        },
        "recipeId": state.content_id,
        "sessionActive": state.session_active,
    }


def build_room_closed_payload(room: str) -> dict[str, Any]:
    return {
        "type": "room_closed",
        "room": room,
        "message": "The host closed this room",
    }
