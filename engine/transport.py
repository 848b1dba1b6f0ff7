"""
Duplex message transport.

The engine only needs four things from a connection: send a frame, receive
a frame, report how many bytes are still queued for sending, and close with
a code.  ``Connection`` captures that; ``WebSocketConnection`` provides it
on top of the ``websockets`` library and ``open_websocket`` is the default
connector used by ``SpeedTestClient``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol, Union

import websockets
import websockets.exceptions

from .constants import (
    CLOSE_ABNORMAL,
    CLOSE_NORMAL,
    CLOSE_TIMEOUT,
    CONNECT_TIMEOUT,
    MAX_BUFFERED_BYTES,
    MAX_FRAME_SIZE,
)
from .errors import ConnectionClosed, TransportFailure

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]


class Connection(Protocol):
    """What a measurement phase needs from its transport."""

    @property
    def buffered_amount(self) -> int:
        """Bytes accepted by ``send`` but not yet written to the network."""
        ...

    async def send(self, data: Frame) -> None:
        ...

    async def recv(self) -> Frame:
        """Next inbound frame; raises ``ConnectionClosed`` once closed."""
        ...

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        ...


Connector = Callable[[str], Awaitable[Connection]]


# ---------------------------------------------------------------------------
# websockets implementation
# ---------------------------------------------------------------------------

def _closed_from(exc: websockets.exceptions.ConnectionClosed) -> ConnectionClosed:
    frame = exc.rcvd
    if frame is None:
        return ConnectionClosed(CLOSE_ABNORMAL)
    return ConnectionClosed(frame.code, frame.reason)


class WebSocketConnection:
    """``Connection`` backed by a ``websockets`` client connection."""

    def __init__(self, ws) -> None:  # noqa: ANN001 (websockets ClientConnection)
        self._ws = ws

    @property
    def buffered_amount(self) -> int:
        transport = getattr(self._ws, "transport", None)
        if transport is None:
            return 0
        return transport.get_write_buffer_size()

    async def send(self, data: Frame) -> None:
        try:
            await self._ws.send(data)
        except websockets.exceptions.ConnectionClosed as exc:
            raise _closed_from(exc) from exc

    async def recv(self) -> Frame:
        try:
            return await self._ws.recv()
        except websockets.exceptions.ConnectionClosed as exc:
            raise _closed_from(exc) from exc

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        await self._ws.close(code=code, reason=reason)


async def open_websocket(url: str, open_timeout: float = CONNECT_TIMEOUT) -> WebSocketConnection:
    """Open a WebSocket to *url*, mapping every failure to ``TransportFailure``."""
    logger.debug("Connecting to %s", url)
    try:
        ws = await websockets.connect(
            url,
            ping_interval=None,
            close_timeout=CLOSE_TIMEOUT,
            open_timeout=open_timeout,
            max_size=MAX_FRAME_SIZE,
            write_limit=MAX_BUFFERED_BYTES,
        )
    except asyncio.TimeoutError as exc:
        raise TransportFailure(f"Connection timeout: {url}") from exc
    except (websockets.exceptions.WebSocketException, OSError) as exc:
        raise TransportFailure(f"Failed to connect to {url}: {exc}") from exc

    logger.debug("Connected to %s", url)
    return WebSocketConnection(ws)
