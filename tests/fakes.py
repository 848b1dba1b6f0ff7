"""In-memory stand-ins for the transport and clock used by the engine tests."""

import asyncio
import json
from typing import Callable, List, Optional

from engine.errors import ConnectionClosed, TransportFailure


class FakeConnection:
    """Queue-driven ``Connection``; tests push inbound frames and inspect sends."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.sent: List = []
        self.closed_with: Optional[int] = None
        self.buffered_amount = 0
        self.on_send: Optional[Callable[["FakeConnection", object], None]] = None
        self.stall_after_chunks: Optional[int] = None

    # -- Scripting ----------------------------------------------------------

    def push(self, frame) -> None:
        self.inbound.put_nowait(frame)

    def push_json(self, **message) -> None:
        self.push(json.dumps(message))

    def push_close(self, code: int, reason: str = "") -> None:
        self.inbound.put_nowait(ConnectionClosed(code, reason))

    def sent_json(self) -> List[dict]:
        return [json.loads(f) for f in self.sent if isinstance(f, str)]

    def sent_binary(self) -> List[bytes]:
        return [f for f in self.sent if isinstance(f, bytes)]

    # -- Connection interface -----------------------------------------------

    async def recv(self):
        item = await self.inbound.get()
        if isinstance(item, ConnectionClosed):
            self.inbound.put_nowait(item)
            raise item
        return item

    async def send(self, data) -> None:
        if self.closed_with is not None:
            raise ConnectionClosed(self.closed_with)
        if (
            isinstance(data, bytes)
            and self.stall_after_chunks is not None
            and len(self.sent_binary()) >= self.stall_after_chunks
        ):
            # Peer stopped reading: the write never drains.
            await asyncio.Event().wait()
        self.sent.append(data)
        if self.on_send is not None:
            self.on_send(self, data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed_with is None:
            self.closed_with = code


def reply_on_complete(**result):
    """``on_send`` hook that answers the upload ``complete`` frame with *result*."""

    def _hook(conn: FakeConnection, data) -> None:
        if isinstance(data, str) and json.loads(data).get("type") == "complete":
            conn.push_json(type="result", **result)

    return _hook


class FakeConnector:
    """Hands out prepared connections in order and records requested URLs."""

    def __init__(self, *connections: FakeConnection) -> None:
        self.connections = list(connections)
        self.urls: List[str] = []

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if not self.connections:
            raise TransportFailure(f"Failed to connect to {url}: refused")
        return self.connections.pop(0)


class StepClock:
    """Deterministic clock that advances by *step* on every read."""

    def __init__(self, start: float = 0.0, step: float = 0.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value
