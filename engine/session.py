"""
Session orchestration.

Runs ping -> download -> upload strictly one after another with a short
pause in between, then scores the results and evaluates the usage
scenarios.  One session may be in flight per ``SpeedTestSession``; the
caller can ``abort()`` it at any suspension point.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, TypeVar

from .client import SpeedTestClient
from .constants import DEFAULT_MAX_SPEED, DEFAULT_PHASE_PAUSE
from .errors import SessionAborted, SessionBusy, SpeedtestError
from .latency import LatencyResult
from .phase import ProgressCallback
from .quality import QualityResult, score_quality
from .scenarios import (
    GamingResult,
    StreamingResult,
    VideoCallResult,
    evaluate_gaming,
    evaluate_streaming,
    evaluate_video_call,
)
from .throughput import ThroughputResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(enum.Enum):
    IDLE = "idle"
    PING = "ping"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    SCORING = "scoring"


@dataclass(frozen=True)
class SessionReport:
    """Everything one session produced."""

    latency: LatencyResult
    download: ThroughputResult
    upload: ThroughputResult
    quality: QualityResult
    streaming: StreamingResult
    gaming: GamingResult
    video_call: VideoCallResult

    def to_dict(self) -> dict:
        return {
            "ping": self.latency.to_dict(),
            "download": self.download.to_dict(),
            "upload": self.upload.to_dict(),
            "quality": self.quality.to_dict(),
            "scenarios": {
                "streaming": self.streaming.to_dict(),
                "gaming": self.gaming.to_dict(),
                "video_call": self.video_call.to_dict(),
            },
        }


def build_report(
    latency: LatencyResult,
    download: ThroughputResult,
    upload: ThroughputResult,
) -> SessionReport:
    """Score completed phase results and evaluate every scenario."""
    quality = score_quality(latency, download, upload)
    return SessionReport(
        latency=latency,
        download=download,
        upload=upload,
        quality=quality,
        streaming=evaluate_streaming(download, latency),
        gaming=evaluate_gaming(latency, download),
        video_call=evaluate_video_call(upload, latency, quality),
    )


class SpeedTestSession:
    """Sequence the three phases and derive the quality signals."""

    def __init__(
        self,
        client: SpeedTestClient,
        max_speed: float = DEFAULT_MAX_SPEED,
        phase_pause: float = DEFAULT_PHASE_PAUSE,
    ) -> None:
        self.client = client
        self.max_speed = max_speed
        self.phase_pause = phase_pause
        self.state = SessionState.IDLE
        self._current: Optional[asyncio.Future] = None
        self._aborted = False

    @property
    def running(self) -> bool:
        return self.state is not SessionState.IDLE

    async def run(self, on_progress: Optional[ProgressCallback] = None) -> SessionReport:
        if self.running:
            raise SessionBusy("A speed test is already running")

        self._aborted = False
        try:
            latency = await self._step(
                SessionState.PING, self.client.run_latency_probe(on_progress=on_progress)
            )
            await self._pause()
            download = await self._step(
                SessionState.DOWNLOAD,
                self.client.run_download_sample(self.max_speed, on_progress=on_progress),
            )
            await self._pause()
            upload = await self._step(
                SessionState.UPLOAD,
                self.client.run_upload_sample(self.max_speed, on_progress=on_progress),
            )

            self.state = SessionState.SCORING
            report = build_report(latency, download, upload)
            logger.info(
                "Session done: %.1f ms, %.2f / %.2f Mbps, stability %d",
                latency.latency, download.throughput, upload.throughput,
                report.quality.stability_score,
            )
            return report

        except SpeedtestError as exc:
            logger.error("Speed test failed: %s", exc)
            raise
        finally:
            self.state = SessionState.IDLE
            self._current = None

    def abort(self) -> bool:
        """Cancel the phase in flight.  Returns False if nothing was running."""
        if not self.running:
            return False
        self._aborted = True
        if self._current is not None and not self._current.done():
            self._current.cancel()
        return True

    # -- Internals ----------------------------------------------------------

    async def _step(self, state: SessionState, work: Awaitable[T]) -> T:
        if self._aborted:
            _close_unstarted(work)
            raise SessionAborted(f"Aborted before {state.value}")

        self.state = state
        self._current = asyncio.ensure_future(work)
        try:
            return await self._current
        except asyncio.CancelledError:
            if self._aborted:
                raise SessionAborted(f"Aborted during {state.value}") from None
            raise
        finally:
            self._current = None

    async def _pause(self) -> None:
        if self.phase_pause > 0:
            await self._step(self.state, asyncio.sleep(self.phase_pause))


def _close_unstarted(work: Any) -> None:
    """Release a coroutine that will never be awaited."""
    close = getattr(work, "close", None)
    if close is not None:
        close()
