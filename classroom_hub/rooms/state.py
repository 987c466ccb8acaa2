from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum


class Role(str, Enum):
    HOST = "host"
    STUDENT = "student"


@dataclass
class Connection:
    """A live channel admitted into a room."""

    connection_id: str
    role: Role
    room: str
    username: str | None = None
    seat_index: int | None = None

    @property
    def is_host(self) -> bool:
        return self.role is Role.HOST

    @property
    def is_student(self) -> bool:
        return self.role is Role.STUDENT


@dataclass
class RoomState:
    """Coordination state of one room.

    `capacity` counts the host, so valid seats are ``0 .. capacity - 2``.
    `occupied_seats` and the keys of `seat_assignments` are kept equal by
    `claim_seat` / `release_seat`; callers must not touch either directly.
    """

    capacity: int
    content_id: str | None = None
    session_active: bool = False
    seat_assignments: dict[int, str] = field(default_factory=dict)

    @property
    def max_seats(self) -> int:
        return self.capacity - 1

    @property
    def occupied_seats(self) -> frozenset[int]:
        return frozenset(self.seat_assignments)

    def sorted_seats(self) -> list[int]:
        return sorted(self.seat_assignments)

    def is_valid_seat(self, seat_index: int) -> bool:
        return 0 <= seat_index < self.max_seats

    def is_occupied(self, seat_index: int) -> bool:
        return seat_index in self.seat_assignments

    def claim_seat(self, seat_index: int, connection_id: str) -> None:
        self.seat_assignments[seat_index] = connection_id

    def release_seat(self, seat_index: int | None, connection_id: str) -> bool:
        """Free `seat_index` if `connection_id` holds it.

        Returns False when there was nothing to release, e.g. the room was
        recreated and the seat now belongs to someone else.
        """

        if seat_index is None or self.seat_assignments.get(seat_index) != connection_id:
            return False
        del self.seat_assignments[seat_index]
        return True


@dataclass(frozen=True)
class ProgressRecord:
    current_step: int
    content_id: str | None
    last_update: str
