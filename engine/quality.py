"""
Connection quality scoring.

Turns one latency result and one result per transfer direction into a 0-100
stability score, a stable/unstable verdict, and an ordered list of advice.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .latency import LatencyResult
from .throughput import ThroughputResult


# ---------------------------------------------------------------------------
# Advisory strings
# ---------------------------------------------------------------------------

ADVICE_HIGH_PACKET_LOSS = "High packet loss - check the cable connection or Wi-Fi signal"
ADVICE_SOME_PACKET_LOSS = "Some packet loss - the connection may be unstable"
ADVICE_HIGH_JITTER = "High jitter - not suitable for gaming or video calls"
ADVICE_ELEVATED_JITTER = "Elevated jitter - you may notice lag while gaming"
ADVICE_HIGH_LATENCY = "High latency - not suitable for gaming or real-time applications"
ADVICE_UNSTABLE_DOWNLOAD = "Unstable download speed - check Wi-Fi or the cable connection"
ADVICE_UNSTABLE_UPLOAD = "Unstable upload speed - the router may be struggling"
ADVICE_SLOW_TTFB = "Slow time to first byte - the server may be far away or overloaded"
ADVICE_EXCELLENT = "Excellent connection - suitable for gaming, streaming and video calls"
ADVICE_STABLE = "Stable connection - suitable for most applications"
ADVICE_STREAM_4K = "Suitable for 4K streaming"
ADVICE_STREAM_HD = "Suitable for HD streaming (1080p)"
ADVICE_STREAM_LOW = "Low download speed - streaming may be affected"
ADVICE_GAMING_EXCELLENT = "Excellent for gaming - low latency and a stable connection"
ADVICE_GAMING_GOOD = "Good for gaming - acceptable latency"
ADVICE_GAMING_POOR = "Not ideal for gaming - high latency or instability"
ADVICE_VIDEO_OK = "Suitable for video calls"
ADVICE_VIDEO_LOW_UPLOAD = "Low upload speed - video calls may be affected"


# ---------------------------------------------------------------------------
# Penalty table: (threshold, divisor, multiplier, cap)
# ---------------------------------------------------------------------------

_JITTER_PENALTY = (20.0, 10.0, 2.0, 20.0)
_LATENCY_PENALTY = (100.0, 10.0, 1.0, 20.0)
_CV_PENALTY = (20.0, 10.0, 2.0, 15.0)
_TTFB_PENALTY = (500.0, 100.0, 2.0, 10.0)
_PACKET_LOSS_WEIGHT = 5.0
_PACKET_LOSS_CAP = 50.0
_BONUS = 5.0

STABLE_SCORE = 70


@dataclass(frozen=True)
class QualityResult:
    """Stability verdict for a full session."""

    stability_score: int = 0
    is_stable: bool = False
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "stability_score": self.stability_score,
            "is_stable": self.is_stable,
            "recommendations": list(self.recommendations),
        }


def _excess_penalty(value: float, rule: Tuple[float, float, float, float]) -> float:
    threshold, divisor, multiplier, cap = rule
    if value <= threshold:
        return 0.0
    return min(cap, (value - threshold) / divisor * multiplier)


def _loss_below(packet_loss: Optional[float], limit: float) -> bool:
    """True when loss was not reported or is under *limit* percent."""
    return packet_loss is None or packet_loss < limit


def clamp_score(value: float) -> int:
    """Round *value* and pin it into 0..100."""
    return int(round(max(0.0, min(100.0, value))))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def calculate_stability_score(
    latency: LatencyResult,
    download: ThroughputResult,
    upload: ThroughputResult,
) -> int:
    """Composite 0-100 heuristic; higher is steadier."""
    score = 100.0

    if latency.packet_loss:
        score -= min(_PACKET_LOSS_CAP, latency.packet_loss * _PACKET_LOSS_WEIGHT)

    score -= _excess_penalty(latency.jitter, _JITTER_PENALTY)
    score -= _excess_penalty(latency.latency, _LATENCY_PENALTY)
    score -= _excess_penalty(download.coefficient_of_variation, _CV_PENALTY)
    score -= _excess_penalty(upload.coefficient_of_variation, _CV_PENALTY)

    if download.ttfb is not None:
        score -= _excess_penalty(download.ttfb, _TTFB_PENALTY)

    if latency.latency < 20 and latency.jitter < 10 and _loss_below(latency.packet_loss, 0.5):
        score += _BONUS

    return clamp_score(score)


def _recommend(
    latency: LatencyResult,
    download: ThroughputResult,
    upload: ThroughputResult,
    is_stable: bool,
) -> List[str]:
    advice: List[str] = []
    loss = latency.packet_loss or 0.0

    if loss > 5:
        advice.append(ADVICE_HIGH_PACKET_LOSS)
    elif loss > 1:
        advice.append(ADVICE_SOME_PACKET_LOSS)

    if latency.jitter > 50:
        advice.append(ADVICE_HIGH_JITTER)
    elif latency.jitter > 20:
        advice.append(ADVICE_ELEVATED_JITTER)

    if latency.latency > 200:
        advice.append(ADVICE_HIGH_LATENCY)

    if download.coefficient_of_variation > 20:
        advice.append(ADVICE_UNSTABLE_DOWNLOAD)
    if upload.coefficient_of_variation > 20:
        advice.append(ADVICE_UNSTABLE_UPLOAD)

    if download.ttfb is not None and download.ttfb > 500:
        advice.append(ADVICE_SLOW_TTFB)

    if is_stable and latency.latency < 30:
        advice.append(ADVICE_EXCELLENT)
    elif is_stable:
        advice.append(ADVICE_STABLE)

    # Streaming capacity
    if download.throughput >= 25:
        advice.append(ADVICE_STREAM_4K)
    elif download.throughput >= 5:
        advice.append(ADVICE_STREAM_HD)
    elif download.throughput < 3:
        advice.append(ADVICE_STREAM_LOW)

    # Gaming capacity
    if latency.latency < 20 and latency.jitter < 10 and loss < 1:
        advice.append(ADVICE_GAMING_EXCELLENT)
    elif latency.latency < 50 and latency.jitter < 20:
        advice.append(ADVICE_GAMING_GOOD)
    elif latency.latency > 200:
        advice.append(ADVICE_HIGH_LATENCY)
    else:
        advice.append(ADVICE_GAMING_POOR)

    # Video-call capacity
    if upload.throughput >= 1.5 and latency.latency < 100 and latency.jitter < 30:
        advice.append(ADVICE_VIDEO_OK)
    elif upload.throughput < 1:
        advice.append(ADVICE_VIDEO_LOW_UPLOAD)
    elif latency.jitter > 50:
        advice.append(ADVICE_HIGH_JITTER)

    return advice


def score_quality(
    latency: LatencyResult,
    download: ThroughputResult,
    upload: ThroughputResult,
) -> QualityResult:
    """Score a completed session.  Never raises for completed results."""
    score = calculate_stability_score(latency, download, upload)
    is_stable = (
        score >= STABLE_SCORE
        and _loss_below(latency.packet_loss, 2)
        and latency.jitter < 30
    )
    advice = _recommend(latency, download, upload, is_stable)

    return QualityResult(
        stability_score=score,
        is_stable=is_stable,
        recommendations=tuple(dict.fromkeys(advice)),
    )
