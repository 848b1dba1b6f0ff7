"""
Wire protocol helpers.

Every phase speaks JSON text frames for control messages and raw binary
frames for payload::

    ping      <- {"type": "ping", "timestamp": T, "sequence": N}
              -> {"type": "pong", "timestamp": T, "sequence": N}
    download  -> {"type": "start", "chunkSize": S}
              <- <binary> ...
    upload    -> <binary> ...
              <- {"type": "start" | "chunkSize", "chunkSize": S}
              -> {"type": "complete"}
    all       <- {"type": "result", ...}
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ProtocolViolation

# Message types
MSG_PING = "ping"
MSG_PONG = "pong"
MSG_START = "start"
MSG_CHUNK_SIZE = "chunkSize"
MSG_COMPLETE = "complete"
MSG_RESULT = "result"

# Phases
PHASE_PING = "ping"
PHASE_DOWNLOAD = "download"
PHASE_UPLOAD = "upload"

UNIT_MS = "ms"
UNIT_MBPS = "Mbps"


@dataclass(frozen=True)
class ProgressEvent:
    """One incremental reading delivered to the caller during a phase."""

    phase: str
    value: float
    unit: str
    timestamp: Optional[float] = None  # ms since the phase started

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"phase": self.phase, "value": self.value, "unit": self.unit}
        if self.timestamp is not None:
            data["timestamp"] = round(self.timestamp, 1)
        return data


def encode_message(msg_type: str, **fields: Any) -> str:
    """Serialise a control frame."""
    return json.dumps({"type": msg_type, **fields})


def decode_message(text: str) -> Dict[str, Any]:
    """Parse a control frame, raising ``ProtocolViolation`` on garbage."""
    try:
        message = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ProtocolViolation(f"Unparsable frame: {text[:50]!r}") from exc

    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        raise ProtocolViolation(f"Frame without a type: {text[:50]!r}")
    return message


def finite_number(value: Any, key: str) -> float:
    """Coerce a JSON number to ``float``, rejecting NaN, infinities and overflow."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProtocolViolation(f"Result field {key!r} is not numeric")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number):
        raise ProtocolViolation(f"Result field {key!r} is not finite")
    return number


def require_number(message: Dict[str, Any], key: str) -> float:
    """Fetch a mandatory numeric field from a result frame."""
    if message.get(key) is None:
        raise ProtocolViolation(f"Result frame is missing numeric field {key!r}")
    return finite_number(message[key], key)


def optional_number(message: Dict[str, Any], key: str) -> Optional[float]:
    value = message.get(key)
    if value is None:
        return None
    return finite_number(value, key)
