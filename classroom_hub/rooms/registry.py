"""Process-local registries behind the classroom engine.

None of these hand out their underlying containers. Removal is always a
silent no-op when the key is already gone, so disconnect and leave can both
run the same teardown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from classroom_hub.rooms.state import Connection
from classroom_hub.rooms.state import ProgressRecord
from classroom_hub.rooms.state import Role
from classroom_hub.rooms.state import RoomState

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def register(  # noqa: PLR0913
        self,
        connection_id: str,
        role: Role,
        room: str,
        username: str | None = None,
        seat_index: int | None = None,
    ) -> Connection:
        connection = Connection(
            connection_id=connection_id,
            role=role,
            room=room,
            username=username,
            seat_index=seat_index,
        )
        self._connections[connection_id] = connection
        return connection

    def lookup(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def role_of(self, connection_id: str) -> Role | None:
        connection = self._connections.get(connection_id)
        return connection.role if connection else None

    def update_seat(self, connection_id: str, seat_index: int | None) -> None:
        connection = self._connections.get(connection_id)
        if connection is not None:
            connection.seat_index = seat_index

    def remove(self, connection_id: str) -> Connection | None:
        return self._connections.pop(connection_id, None)

    def hosts_among(self, connection_ids: Iterable[str]) -> list[str]:
        """Filter `connection_ids` down to those registered as host."""

        return [cid for cid in connection_ids if self.role_of(cid) is Role.HOST]


class RoomRegistry:
    def __init__(self, default_max_seats: int) -> None:
        self.default_max_seats = default_max_seats
        self._rooms: dict[str, RoomState] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room: object) -> bool:
        return room in self._rooms

    def create(
        self,
        room: str,
        max_seats: int | None = None,
        content_id: str | None = None,
    ) -> RoomState:
        """Create `room`, replacing any previous state under the same name."""

        seats = max_seats or self.default_max_seats
        state = RoomState(capacity=seats + 1, content_id=content_id)
        self._rooms[room] = state
        return state

    def get(self, room: str) -> RoomState | None:
        return self._rooms.get(room)

    def delete(self, room: str) -> RoomState | None:
        return self._rooms.pop(room, None)


class ProgressStore:
    def __init__(self) -> None:
        self._records: dict[str, ProgressRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def upsert(self, key: str, record: ProgressRecord) -> None:
        self._records[key] = record

    def get(self, key: str) -> ProgressRecord | None:
        return self._records.get(key)

    def discard(self, key: str) -> None:
        self._records.pop(key, None)

    def discard_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._records.pop(key, None)
