"""
Per-phase protocol state machine.

Each measurement phase (ping, download, upload) owns exactly one connection
and walks through::

    AWAITING_OPEN -> PROBING | STREAMING -> [AWAITING_RESULT] -> CLOSED
                                                             \\-> FAILED

A reader task pumps inbound frames into an ``asyncio.Queue``; background
tasks (the upload sender) report failures through the same queue.  The
phase consumes that queue one event at a time, so timeouts and cancellation
are plain ``await`` semantics.  All tasks and the connection are released
together when ``run`` returns, fails, or is cancelled.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from .constants import CLOSE_NORMAL, DEFAULT_IDLE_TIMEOUT, EXPECTED_CLOSE_CODES
from .errors import (
    AbnormalClosure,
    ConnectionClosed,
    IdleTimeout,
    ProtocolViolation,
    SpeedtestError,
    TransportFailure,
)
from .protocol import MSG_RESULT, ProgressEvent, decode_message
from .transport import Connection, Connector, Frame

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")
ProgressCallback = Callable[[ProgressEvent], None]
Clock = Callable[[], float]


class PhaseState(enum.Enum):
    AWAITING_OPEN = "awaiting_open"
    PROBING = "probing"
    STREAMING = "streaming"
    AWAITING_RESULT = "awaiting_result"
    CLOSED = "closed"
    FAILED = "failed"


class _Kind(enum.Enum):
    TEXT = "text"
    BINARY = "binary"
    CLOSED = "closed"
    ERROR = "error"
    WAKE = "wake"


@dataclass
class _Event:
    kind: _Kind
    data: Any = None


class Phase(Generic[ResultT]):
    """Base class for one protocol phase over one connection."""

    phase: str = ""
    path: str = ""
    active_state = PhaseState.PROBING

    def __init__(
        self,
        base_url: str,
        connector: Connector,
        clock: Clock = time.perf_counter,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self.connector = connector
        self.clock = clock
        self.idle_timeout = idle_timeout
        self.on_progress: Optional[ProgressCallback] = None
        self.state = PhaseState.AWAITING_OPEN

        self._conn: Optional[Connection] = None
        self._events: "asyncio.Queue[_Event]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._result: Optional[ResultT] = None
        self._started_at = 0.0

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.path

    # -- Lifecycle ----------------------------------------------------------

    async def run(self) -> ResultT:
        """Drive the phase to its terminal result or raise."""
        self.state = PhaseState.AWAITING_OPEN
        self._events = asyncio.Queue()
        self._result = None

        try:
            self._conn = await self._open()
            self._started_at = self.clock()
            self.state = self.active_state
            self._spawn(self._pump(self._conn))
            await self.on_open()

            while self._result is None:
                await self._dispatch(await self._next_event())

        except SpeedtestError as exc:
            self.state = PhaseState.FAILED
            logger.error("%s phase failed: %s", self.phase, exc)
            raise
        except BaseException:
            self.state = PhaseState.FAILED
            raise
        finally:
            await self._shutdown()

        self.state = PhaseState.CLOSED
        return self._result

    async def _open(self) -> Connection:
        try:
            return await self.connector(self.url)
        except TransportFailure as exc:
            if exc.phase is None:
                exc.phase = self.phase
            raise

    async def _shutdown(self) -> None:
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self._conn is not None:
            conn, self._conn = self._conn, None
            try:
                await conn.close(CLOSE_NORMAL)
            except (ConnectionClosed, OSError) as exc:
                logger.debug("%s: close after shutdown failed: %s", self.phase, exc)

    # -- Hooks --------------------------------------------------------------

    async def on_open(self) -> None:
        """Called once the connection is established."""

    async def on_message(self, message: Dict[str, Any]) -> None:
        """Handle a decoded non-result control frame."""
        logger.debug("%s: ignoring %r frame", self.phase, message.get("type"))

    async def on_binary(self, data: bytes) -> None:
        logger.debug("%s: ignoring %d-byte binary frame", self.phase, len(data))

    def parse_result(self, message: Dict[str, Any]) -> ResultT:
        raise NotImplementedError

    def frame_timeout(self) -> Optional[float]:
        """Seconds to wait for the next event, or None to wait forever."""
        return self.idle_timeout

    # -- Helpers for subclasses ---------------------------------------------

    def elapsed(self, now: Optional[float] = None) -> float:
        """Seconds since the connection opened."""
        if now is None:
            now = self.clock()
        return now - self._started_at

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(self._guard(coro))
        self._tasks.append(task)
        return task

    def _wake(self) -> None:
        """Make the event loop re-evaluate ``frame_timeout``."""
        self._events.put_nowait(_Event(_Kind.WAKE))

    async def _send(self, data: Frame) -> None:
        if self._conn is None:
            raise ProtocolViolation("Send on a closed phase", phase=self.phase)
        try:
            await self._conn.send(data)
        except ConnectionClosed as exc:
            raise self._closure_error(exc.code, exc.reason) from exc
        except OSError as exc:
            raise TransportFailure(f"Send failed: {exc}", phase=self.phase) from exc

    def _emit(self, value: float, unit: str, now: Optional[float] = None) -> None:
        if self.on_progress is None:
            return
        self.on_progress(
            ProgressEvent(
                phase=self.phase,
                value=value,
                unit=unit,
                timestamp=self.elapsed(now) * 1000,
            )
        )

    # -- Internals ----------------------------------------------------------

    async def _guard(self, coro: Awaitable[None]) -> None:
        """Run a background coroutine, forwarding its failure to the queue."""
        try:
            await coro
        except ConnectionClosed as exc:
            self._events.put_nowait(_Event(_Kind.CLOSED, exc))
        except Exception as exc:  # forwarded to run(), never dropped
            self._events.put_nowait(_Event(_Kind.ERROR, exc))

    async def _pump(self, conn: Connection) -> None:
        while True:
            frame = await conn.recv()
            if isinstance(frame, str):
                self._events.put_nowait(_Event(_Kind.TEXT, frame))
            else:
                self._events.put_nowait(_Event(_Kind.BINARY, frame))

    async def _next_event(self) -> _Event:
        timeout = self.frame_timeout()
        if timeout is None:
            return await self._events.get()
        try:
            return await asyncio.wait_for(self._events.get(), timeout=timeout)
        except asyncio.TimeoutError:
            raise IdleTimeout(timeout, phase=self.phase) from None

    async def _dispatch(self, event: _Event) -> None:
        if event.kind is _Kind.TEXT:
            await self._handle_text(event.data)
        elif event.kind is _Kind.BINARY:
            await self.on_binary(event.data)
        elif event.kind is _Kind.CLOSED:
            raise self._closure_error(event.data.code, event.data.reason)
        elif event.kind is _Kind.ERROR:
            error = event.data
            if isinstance(error, SpeedtestError):
                raise error
            raise TransportFailure(f"Connection error: {error}", phase=self.phase) from error

    async def _handle_text(self, text: str) -> None:
        try:
            message = decode_message(text)
        except ProtocolViolation as exc:
            logger.warning("%s: ignoring frame: %s", self.phase, exc)
            return

        if message["type"] == MSG_RESULT:
            self._result = self.parse_result(message)
            logger.debug("%s: result received", self.phase)
        else:
            await self.on_message(message)

    def _closure_error(self, code: int, reason: str = "") -> SpeedtestError:
        if code in EXPECTED_CLOSE_CODES:
            return ProtocolViolation(
                f"Connection closed before result (code {code})", phase=self.phase
            )
        return AbnormalClosure(code, phase=self.phase, reason=reason)
