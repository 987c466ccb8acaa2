from __future__ import annotations

from collections import defaultdict
from typing import Any

import pytest

from classroom_hub.rooms.engine import ClassroomEngine


class RecordingTransport:
    """In-memory stand-in for the Socket.IO server.

    Keeps broadcast-group membership like python-socketio does and records
    every emission per recipient.
    """

    def __init__(self) -> None:
        self.engine: ClassroomEngine | None = None
        self.connected: set[str] = set()
        self.groups: dict[str, set[str]] = defaultdict(set)
        self.inbox: dict[str, list[tuple[str, Any]]] = defaultdict(list)
        self.disconnected: list[str] = []

    def connect(self, *sids: str) -> None:
        self.connected.update(sids)

    async def emit(self, event: str, data: Any, to: str) -> None:
        recipients = [to] if to in self.connected else sorted(self.groups.get(to, ()))
        for sid in recipients:
            self.inbox[sid].append((event, data))

    async def enter_room(self, sid: str, room: str) -> None:
        self.groups[room].add(sid)

    async def leave_room(self, sid: str, room: str) -> None:
        members = self.groups.get(room)
        if members is None:
            return
        members.discard(sid)
        if not members:
            del self.groups[room]

    def members(self, room: str) -> list[str]:
        return sorted(self.groups.get(room, ()))

    async def disconnect(self, sid: str) -> None:
        if sid not in self.connected:
            return
        self.disconnected.append(sid)
        # python-socketio runs the disconnect handler before dropping rooms.
        if self.engine is not None:
            await self.engine.disconnect(sid)
        for room in list(self.groups):
            await self.leave_room(sid, room)
        self.connected.discard(sid)

    def received(self, sid: str, event: str) -> list[Any]:
        return [data for name, data in self.inbox[sid] if name == event]

    def messages(self, sid: str, message_type: str) -> list[dict[str, Any]]:
        return [
            data
            for data in self.received(sid, "message")
            if isinstance(data, dict) and data.get("type") == message_type
        ]

    def clear(self) -> None:
        self.inbox.clear()


@pytest.fixture
def transport() -> RecordingTransport:
    transport = RecordingTransport()
    transport.connect("host", "alice", "bob", "carol", "dave")
    return transport


@pytest.fixture
def engine(transport: RecordingTransport) -> ClassroomEngine:
    engine = ClassroomEngine(transport, default_max_seats=5)
    transport.engine = engine
    return engine
