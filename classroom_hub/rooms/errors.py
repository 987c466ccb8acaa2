"""Errors raised by room handlers.

Each carries the `type` tag reported back to the originating connection in
an outbound ``message`` event.
"""

from __future__ import annotations


class ClassroomError(Exception):
    message_type = "error"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_payload(self) -> dict[str, str]:
        return {"type": self.message_type, "message": self.message}


class RoomNotFound(ClassroomError):
    message_type = "room_not_found"
    default_message = "Room not found"


class RoomFull(ClassroomError):
    message_type = "room_full"
    default_message = "Room is full"


class InvalidSeat(ClassroomError):
    message_type = "invalid_seat"
    default_message = "Invalid seat number"


class SeatOccupied(ClassroomError):
    message_type = "seat_occupied"
    default_message = "Seat is already taken"


class Unauthorized(ClassroomError):
    message_type = "error"
    default_message = "Not allowed for this role"


class Unauthenticated(Exception):  # noqa: N818
    """Handshake token missing, malformed or expired."""

    def __init__(self, reason: str = "unauthorized") -> None:
        self.reason = reason
        super().__init__(reason)
