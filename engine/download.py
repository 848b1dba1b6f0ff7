"""
Download speed sampler.

Announces the desired chunk size, then counts the binary frames the server
streams back until it sends its ``result`` frame.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from .constants import CHUNK_SIZE, DEFAULT_IDLE_TIMEOUT, DEFAULT_MAX_SPEED, DOWNLOAD_PATH
from .phase import Clock
from .protocol import MSG_START, PHASE_DOWNLOAD, encode_message
from .throughput import ThroughputSampler
from .transport import Connector

logger = logging.getLogger(__name__)


class DownloadSampler(ThroughputSampler):
    """Measure server -> client throughput over one connection."""

    phase = PHASE_DOWNLOAD
    path = DOWNLOAD_PATH
    reports_ttfb = True

    def __init__(
        self,
        base_url: str,
        connector: Connector,
        max_speed: float = DEFAULT_MAX_SPEED,
        clock: Clock = time.perf_counter,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        super().__init__(
            base_url, connector, max_speed=max_speed, clock=clock, idle_timeout=idle_timeout
        )
        self.chunk_size = chunk_size

    async def on_open(self) -> None:
        await super().on_open()
        logger.debug("download: requesting %d-byte chunks", self.chunk_size)
        await self._send(encode_message(MSG_START, chunkSize=self.chunk_size))

    async def on_binary(self, data: bytes) -> None:
        self.bytes_transferred += len(data)
        self._maybe_report(self.clock())
