"""
Caller-facing measurement API.

``SpeedTestClient`` runs one protocol phase per call, each over a fresh
connection::

    client = SpeedTestClient("ws://speed.example.net:3001")
    ping = await client.run_latency_probe(on_progress=print)
    down = await client.run_download_sample(max_speed=500)
    up = await client.run_upload_sample(max_speed=500)
"""
from __future__ import annotations

import time
from typing import Optional

from .constants import (
    CHUNK_SIZE,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_MAX_SPEED,
    DEFAULT_SERVER_URL,
    DEFAULT_UPLOAD_DURATION,
)
from .download import DownloadSampler
from .latency import LatencyProber, LatencyResult
from .phase import Clock, ProgressCallback
from .throughput import ThroughputResult
from .transport import Connector, open_websocket
from .upload import UploadSampler


class SpeedTestClient:
    """Factory and runner for the ping, download, and upload phases."""

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        connector: Connector = open_websocket,
        clock: Clock = time.perf_counter,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
        upload_duration: float = DEFAULT_UPLOAD_DURATION,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.server_url = server_url
        self.connector = connector
        self.clock = clock
        self.idle_timeout = idle_timeout
        self.upload_duration = upload_duration
        self.chunk_size = chunk_size

    # -- Phase factories ----------------------------------------------------

    def latency_prober(self) -> LatencyProber:
        return LatencyProber(
            self.server_url, self.connector, clock=self.clock, idle_timeout=self.idle_timeout
        )

    def download_sampler(self, max_speed: float = DEFAULT_MAX_SPEED) -> DownloadSampler:
        return DownloadSampler(
            self.server_url,
            self.connector,
            max_speed=max_speed,
            clock=self.clock,
            idle_timeout=self.idle_timeout,
            chunk_size=self.chunk_size,
        )

    def upload_sampler(self, max_speed: float = DEFAULT_MAX_SPEED) -> UploadSampler:
        return UploadSampler(
            self.server_url,
            self.connector,
            max_speed=max_speed,
            clock=self.clock,
            idle_timeout=self.idle_timeout,
            duration=self.upload_duration,
            chunk_size=self.chunk_size,
        )

    # -- Runners ------------------------------------------------------------

    async def run_latency_probe(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> LatencyResult:
        prober = self.latency_prober()
        prober.on_progress = on_progress
        return await prober.run()

    async def run_download_sample(
        self,
        max_speed: float = DEFAULT_MAX_SPEED,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ThroughputResult:
        sampler = self.download_sampler(max_speed)
        sampler.on_progress = on_progress
        return await sampler.run()

    async def run_upload_sample(
        self,
        max_speed: float = DEFAULT_MAX_SPEED,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ThroughputResult:
        sampler = self.upload_sampler(max_speed)
        sampler.on_progress = on_progress
        return await sampler.run()
