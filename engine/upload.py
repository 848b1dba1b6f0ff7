"""
Upload speed sampler.

Streams random binary chunks to the server for a fixed wall-clock window,
then sends ``{"type": "complete"}`` and waits for the server's result.

Sending is rate-governed rather than unbounded:

* the sender sleeps ``max(16 ms, chunk_size / target_rate)`` between chunks,
  where the target rate is the caller's ``max_speed`` capped at 1 Gbps;
* no chunk is queued while the connection backlog is at or above 10 MiB.

The server may resize future chunks with ``start`` or ``chunkSize``
directives.  A new size applies from the next generated chunk; chunks
already handed to the transport are never cut short.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from .constants import (
    CHUNK_SIZE,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_MAX_SPEED,
    DEFAULT_UPLOAD_DURATION,
    MAX_BUFFERED_BYTES,
    MAX_FRAME_SIZE,
    MIN_SEND_INTERVAL,
    RANDOM_BLOCK_SIZE,
    UPLOAD_PATH,
    UPLOAD_RATE_CAP,
)
from .phase import Clock, PhaseState
from .protocol import MSG_CHUNK_SIZE, MSG_COMPLETE, MSG_START, PHASE_UPLOAD, encode_message
from .throughput import ThroughputSampler
from .transport import Connector

logger = logging.getLogger(__name__)

RandomSource = Callable[[int], bytes]


def generate_chunk(size: int, source: RandomSource = os.urandom) -> bytes:
    """Random payload of *size* bytes, drawn in blocks of at most 64 KiB."""
    buf = bytearray(size)
    for offset in range(0, size, RANDOM_BLOCK_SIZE):
        n = min(RANDOM_BLOCK_SIZE, size - offset)
        buf[offset:offset + n] = source(n)
    return bytes(buf)


class UploadSampler(ThroughputSampler):
    """Measure client -> server throughput over one connection."""

    phase = PHASE_UPLOAD
    path = UPLOAD_PATH

    def __init__(
        self,
        base_url: str,
        connector: Connector,
        max_speed: float = DEFAULT_MAX_SPEED,
        clock: Clock = time.perf_counter,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
        duration: float = DEFAULT_UPLOAD_DURATION,
        chunk_size: int = CHUNK_SIZE,
        random_source: RandomSource = os.urandom,
    ) -> None:
        super().__init__(
            base_url, connector, max_speed=max_speed, clock=clock, idle_timeout=idle_timeout
        )
        self.duration = duration
        self.chunk_size = chunk_size
        self.random_source = random_source
        self.chunks_sent = 0
        self._sender: Optional[asyncio.Task] = None

    # -- Rate governing -----------------------------------------------------

    @property
    def target_bytes_per_second(self) -> float:
        target_mbps = min(self.max_speed, UPLOAD_RATE_CAP)
        return target_mbps * 1_000_000 / 8

    def send_interval(self) -> float:
        """Minimum pause between chunks for the current chunk size."""
        return max(MIN_SEND_INTERVAL, self.chunk_size / self.target_bytes_per_second)

    # -- Phase hooks --------------------------------------------------------

    async def on_open(self) -> None:
        await super().on_open()
        self.chunks_sent = 0
        self._sender = self._spawn(self._send_loop())

    async def on_message(self, message: Dict[str, Any]) -> None:
        if message["type"] not in (MSG_START, MSG_CHUNK_SIZE):
            await super().on_message(message)
            return

        size = message.get("chunkSize")
        if isinstance(size, bool) or not isinstance(size, int) or not 0 < size <= MAX_FRAME_SIZE:
            logger.warning("upload: ignoring invalid chunk size %r", size)
            return

        logger.debug("upload: chunk size %d -> %d", self.chunk_size, size)
        self.chunk_size = size

    def frame_timeout(self) -> Optional[float]:
        # The server is mostly silent while we stream.  Waits are bounded by
        # the end of the run plus one idle window, so a send stuck on a peer
        # that stopped reading still fails the phase.
        if self.idle_timeout is None or self.state is not PhaseState.STREAMING:
            return self.idle_timeout
        return max(0.0, self.duration - self.elapsed()) + self.idle_timeout

    # -- Sender -------------------------------------------------------------

    async def _send_loop(self) -> None:
        while True:
            now = self.clock()

            if self.elapsed(now) >= self.duration:
                await self._send(encode_message(MSG_COMPLETE))
                self.state = PhaseState.AWAITING_RESULT
                logger.debug(
                    "upload: complete after %d chunks / %d bytes",
                    self.chunks_sent, self.bytes_transferred,
                )
                self._wake()
                return

            if self._conn is not None and self._conn.buffered_amount < MAX_BUFFERED_BYTES:
                chunk = generate_chunk(self.chunk_size, self.random_source)
                await self._send(chunk)
                self.bytes_transferred += len(chunk)
                self.chunks_sent += 1
                self._maybe_report(now)

            await asyncio.sleep(self.send_interval())
