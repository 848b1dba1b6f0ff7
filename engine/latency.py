"""
WebSocket latency probe.

Protocol flow::

    1. Connect to  {server}/ws/ping
    2. Receive  {"type": "ping", "timestamp": T, "sequence": N}
    3. Send     {"type": "pong", "timestamp": T, "sequence": N}
    4. Repeat 2-3 while the server measures the round trips.
    5. Receive  {"type": "result", "latency": ..., "jitter": ..., ...}

Round-trip time is measured on the server side; the client only has to
echo each probe as fast as possible.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .constants import PING_PATH
from .phase import Phase, PhaseState
from .protocol import (
    MSG_PING,
    MSG_PONG,
    PHASE_PING,
    UNIT_MS,
    encode_message,
    optional_number,
    require_number,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LatencyResult:
    """Latency figures reported by the server at the end of the probe."""

    latency: float = 0.0          # mean round trip, ms
    jitter: float = 0.0           # mean |rtt[i] - rtt[i-1]|, ms
    packets: int = 0
    packet_loss: Optional[float] = None  # percent
    min_latency: Optional[float] = None
    max_latency: Optional[float] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> LatencyResult:
        loss = optional_number(message, "packetLoss")
        if loss is not None:
            loss = max(0.0, min(100.0, loss))
        return cls(
            latency=max(0.0, require_number(message, "latency")),
            jitter=max(0.0, require_number(message, "jitter")),
            packets=int(require_number(message, "packets")),
            packet_loss=loss,
            min_latency=optional_number(message, "minLatency"),
            max_latency=optional_number(message, "maxLatency"),
        )

    def to_dict(self) -> dict:
        result: dict = {
            "latency": round(self.latency, 2),
            "jitter": round(self.jitter, 3),
            "packets": self.packets,
        }
        if self.packet_loss is not None:
            result["packet_loss"] = round(self.packet_loss, 2)
        if self.min_latency is not None:
            result["min_latency"] = round(self.min_latency, 2)
        if self.max_latency is not None:
            result["max_latency"] = round(self.max_latency, 2)
        return result


# ---------------------------------------------------------------------------
# Prober
# ---------------------------------------------------------------------------

class LatencyProber(Phase[LatencyResult]):
    """Echo server-initiated probes until the server reports a result."""

    phase = PHASE_PING
    path = PING_PATH
    active_state = PhaseState.PROBING

    async def on_message(self, message: Dict[str, Any]) -> None:
        if message["type"] != MSG_PING:
            await super().on_message(message)
            return

        await self._send(
            encode_message(
                MSG_PONG,
                timestamp=message.get("timestamp"),
                sequence=message.get("sequence"),
            )
        )
        # Liveness tick; the real figures arrive with the result.
        self._emit(0.0, UNIT_MS)

    def parse_result(self, message: Dict[str, Any]) -> LatencyResult:
        return LatencyResult.from_message(message)
