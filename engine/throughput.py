"""
Shared throughput-sampler logic for the download and upload phases.

Both directions count bytes on a single connection, report an approximate
instantaneous rate at most every ``PROGRESS_INTERVAL`` seconds, and finish
with an authoritative ``result`` frame computed by the server.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .constants import DEFAULT_IDLE_TIMEOUT, DEFAULT_MAX_SPEED, PROGRESS_INTERVAL
from .errors import ProtocolViolation
from .phase import Clock, Phase, PhaseState
from .protocol import UNIT_MBPS, finite_number, optional_number, require_number
from .stats import coefficient_of_variation
from .transport import Connector


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThroughputResult:
    """Download or upload result as reported by the server."""

    throughput: float = 0.0        # Mbps
    bytes_total: int = 0
    duration: float = 0.0          # seconds
    ttfb: Optional[float] = None   # ms, download only
    speed_variance: Optional[float] = None   # Mbps^2
    speed_samples: Tuple[float, ...] = field(default_factory=tuple)

    @classmethod
    def from_message(cls, message: Dict[str, Any], with_ttfb: bool = True) -> ThroughputResult:
        raw_samples = message.get("speedSamples") or []
        if not isinstance(raw_samples, list):
            raise ProtocolViolation("speedSamples must be a list")
        samples = tuple(max(0.0, finite_number(s, "speedSamples")) for s in raw_samples)

        variance = optional_number(message, "speedVariance")
        return cls(
            throughput=max(0.0, require_number(message, "throughput")),
            bytes_total=int(require_number(message, "bytes")),
            duration=max(0.0, require_number(message, "duration")),
            ttfb=optional_number(message, "ttfb") if with_ttfb else None,
            speed_variance=max(0.0, variance) if variance is not None else None,
            speed_samples=samples,
        )

    @property
    def coefficient_of_variation(self) -> float:
        """Speed CV in percent; 0.0 without a variance figure."""
        return coefficient_of_variation(self.speed_variance, self.throughput)

    def to_dict(self) -> dict:
        result: dict = {
            "throughput": round(self.throughput, 2),
            "bytes": self.bytes_total,
            "duration": round(self.duration, 3),
            "samples": [round(s, 2) for s in self.speed_samples],
        }
        if self.ttfb is not None:
            result["ttfb"] = round(self.ttfb, 1)
        if self.speed_variance is not None:
            result["speed_variance"] = round(self.speed_variance, 3)
        return result


def calculate_rate(byte_count: int, seconds: float) -> float:
    """Average rate in Mbps for *byte_count* over *seconds*."""
    if seconds <= 0:
        return 0.0
    return byte_count * 8 / seconds / 1_000_000


# ---------------------------------------------------------------------------
# Sampler base
# ---------------------------------------------------------------------------

class ThroughputSampler(Phase[ThroughputResult]):
    """Byte-counting phase with throttled, clamped progress reporting."""

    active_state = PhaseState.STREAMING
    reports_ttfb = False

    def __init__(
        self,
        base_url: str,
        connector: Connector,
        max_speed: float = DEFAULT_MAX_SPEED,
        clock: Clock = time.perf_counter,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        super().__init__(base_url, connector, clock=clock, idle_timeout=idle_timeout)
        self.max_speed = max_speed
        self.bytes_transferred = 0
        self._last_progress = 0.0

    async def on_open(self) -> None:
        self.bytes_transferred = 0
        self._last_progress = self._started_at

    def _maybe_report(self, now: float) -> None:
        """Emit the running rate if a progress window has passed."""
        if now - self._last_progress < PROGRESS_INTERVAL:
            return
        mbps = calculate_rate(self.bytes_transferred, self.elapsed(now))
        self._emit(min(mbps, self.max_speed), UNIT_MBPS, now)
        self._last_progress = now

    def parse_result(self, message: Dict[str, Any]) -> ThroughputResult:
        return ThroughputResult.from_message(message, with_ttfb=self.reports_ttfb)
