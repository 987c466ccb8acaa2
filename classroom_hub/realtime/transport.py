"""Broadcast-group transport used by the classroom engine.

The engine only ever talks to a `Transport`; production wires in
`SocketIOTransport`, tests substitute an in-memory double.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

if TYPE_CHECKING:
    import socketio


class Transport(Protocol):
    async def emit(self, event: str, data: Any, to: str) -> None: ...

    async def enter_room(self, sid: str, room: str) -> None: ...

    async def leave_room(self, sid: str, room: str) -> None: ...

    def members(self, room: str) -> list[str]: ...

    async def disconnect(self, sid: str) -> None: ...


class SocketIOTransport:
    """`Transport` backed by a python-socketio `AsyncServer`.

    `to` is either a connection sid or a room name; Socket.IO keeps every sid
    in a room named after itself, so both address the same way.
    """

    def __init__(self, server: socketio.AsyncServer, namespace: str = "/") -> None:
        self.server = server
        self.namespace = namespace

    async def emit(self, event: str, data: Any, to: str) -> None:
        await self.server.emit(event, data, to=to, namespace=self.namespace)

    async def enter_room(self, sid: str, room: str) -> None:
        await self.server.enter_room(sid, room, namespace=self.namespace)

    async def leave_room(self, sid: str, room: str) -> None:
        await self.server.leave_room(sid, room, namespace=self.namespace)

    def members(self, room: str) -> list[str]:
        return [
            sid
            for sid, _eio_sid in self.server.manager.get_participants(
                self.namespace,
                room,
            )
        ]

    async def disconnect(self, sid: str) -> None:
        await self.server.disconnect(sid, namespace=self.namespace)
