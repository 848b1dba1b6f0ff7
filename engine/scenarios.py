"""
Real-world usage scenarios.

Pure functions that judge whether a measured connection is good enough for
video streaming, online gaming, and video calls.  Each returns a frozen
result with sub-scores (0-100), an overall score, a one-line summary, and
the advisories that led to it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .latency import LatencyResult
from .quality import QualityResult, STABLE_SCORE, clamp_score
from .throughput import ThroughputResult

SCENARIO_STREAMING = "streaming"
SCENARIO_GAMING = "gaming"
SCENARIO_VIDEO_CALL = "video-call"

# Streaming tiers: 480p 3 Mbps, 720p 5 Mbps, 1080p 25 Mbps, 4K 50 Mbps
STREAM_480P_MBPS = 3.0
STREAM_720P_MBPS = 5.0
STREAM_1080P_MBPS = 25.0
STREAM_4K_MBPS = 50.0
STREAM_MAX_LATENCY = 100.0

# Gaming: latency < 100 ms, jitter < 30 ms, loss < 5 %, download >= 3 Mbps
GAMING_MAX_LATENCY = 100.0
GAMING_MAX_JITTER = 30.0
GAMING_MAX_LOSS = 5.0
GAMING_MIN_DOWNLOAD = 3.0

# Video calls: upload >= 1.5 Mbps (HD), latency < 100 ms
VIDEO_MIN_UPLOAD = 1.5
VIDEO_MIN_UPLOAD_SD = 0.5
VIDEO_MAX_LATENCY = 100.0
VIDEO_LATENCY_SCALE = 200.0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioResult:
    """Fields shared by every scenario verdict."""

    scenario: str = ""
    suitable: bool = False
    overall_score: int = 0
    message: str = ""
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario,
            "suitable": self.suitable,
            "overall_score": self.overall_score,
            "message": self.message,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class StreamingResult(ScenarioResult):
    can_stream_1080p: bool = False
    can_stream_4k: bool = False
    recommended_quality: str = "480p"
    score: int = 0

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            can_stream_1080p=self.can_stream_1080p,
            can_stream_4k=self.can_stream_4k,
            recommended_quality=self.recommended_quality,
            score=self.score,
        )
        return result


@dataclass(frozen=True)
class GamingResult(ScenarioResult):
    latency_score: int = 0
    jitter_score: int = 0
    packet_loss_score: int = 0

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            latency_score=self.latency_score,
            jitter_score=self.jitter_score,
            packet_loss_score=self.packet_loss_score,
        )
        return result


@dataclass(frozen=True)
class VideoCallResult(ScenarioResult):
    upload_score: int = 0
    latency_score: int = 0
    stability_score: int = 0

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            upload_score=self.upload_score,
            latency_score=self.latency_score,
            stability_score=self.stability_score,
        )
        return result


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

def evaluate_streaming(download: ThroughputResult, latency: LatencyResult) -> StreamingResult:
    mbps = download.throughput
    rtt = latency.latency

    can_4k = mbps >= STREAM_4K_MBPS and rtt < STREAM_MAX_LATENCY
    can_1080p = mbps >= STREAM_1080P_MBPS and rtt < STREAM_MAX_LATENCY

    if can_4k:
        quality = "4K"
        message = "Excellent! You can watch 4K streams without problems."
    elif can_1080p:
        quality = "1080p"
        message = "Good! You can watch 1080p streams."
    elif mbps >= STREAM_720P_MBPS:
        quality = "720p"
        message = "You can watch 720p streams."
    else:
        quality = "480p"
        message = "Low download speed - we recommend 480p or lower."

    advice: List[str] = []
    if mbps >= STREAM_1080P_MBPS and rtt >= STREAM_MAX_LATENCY:
        advice.append("High latency - HD streams may take longer to start")
    if not can_4k and mbps >= STREAM_1080P_MBPS and rtt < STREAM_MAX_LATENCY:
        advice.append(f"4K streaming needs at least {STREAM_4K_MBPS:.0f} Mbps")
    if STREAM_480P_MBPS <= mbps < STREAM_720P_MBPS:
        advice.append(f"HD streaming needs at least {STREAM_720P_MBPS:.0f} Mbps")
    if mbps < STREAM_480P_MBPS:
        advice.append("Download below 3 Mbps - even 480p may buffer")

    score = clamp_score(min(100.0, mbps / STREAM_4K_MBPS * 100))

    return StreamingResult(
        scenario=SCENARIO_STREAMING,
        suitable=mbps >= STREAM_480P_MBPS,
        overall_score=score,
        message=message,
        recommendations=tuple(advice),
        can_stream_1080p=can_1080p,
        can_stream_4k=can_4k,
        recommended_quality=quality,
        score=score,
    )


# ---------------------------------------------------------------------------
# Gaming
# ---------------------------------------------------------------------------

def evaluate_gaming(latency: LatencyResult, download: ThroughputResult) -> GamingResult:
    rtt = latency.latency
    jitter = latency.jitter
    loss = latency.packet_loss or 0.0
    mbps = download.throughput

    latency_score = max(0.0, 100 - rtt / GAMING_MAX_LATENCY * 100)
    jitter_score = max(0.0, 100 - jitter / GAMING_MAX_JITTER * 100)
    loss_score = max(0.0, 100 - loss / GAMING_MAX_LOSS * 100)
    overall = latency_score * 0.5 + jitter_score * 0.3 + loss_score * 0.2

    suitable = (
        rtt < GAMING_MAX_LATENCY
        and jitter < GAMING_MAX_JITTER
        and loss < GAMING_MAX_LOSS
        and mbps >= GAMING_MIN_DOWNLOAD
    )

    advice: List[str] = []
    if rtt >= 100:
        advice.append("High latency - not suitable for gaming")
    elif rtt >= 50:
        advice.append("Acceptable latency - you may notice some delay")

    if jitter >= 30:
        advice.append("High jitter - unstable connection for gaming")
    elif jitter >= 20:
        advice.append("Elevated jitter - you may notice instability")

    if loss >= 5:
        advice.append("High packet loss - connection problems")
    elif loss >= 3:
        advice.append("Elevated packet loss - there may be problems")

    if mbps < GAMING_MIN_DOWNLOAD:
        advice.append("Low download speed - game updates may be slow")

    if suitable and rtt < 20 and jitter < 10 and loss < 1:
        advice.append("Excellent connection for gaming!")
    elif suitable:
        advice.append("Good connection for gaming")

    if suitable and rtt < 20:
        message = "Excellent for gaming - low latency and a stable connection"
    elif suitable:
        message = "Suitable for gaming - acceptable latency"
    else:
        message = "Not ideal for gaming - high latency or instability"

    return GamingResult(
        scenario=SCENARIO_GAMING,
        suitable=suitable,
        overall_score=clamp_score(overall),
        message=message,
        recommendations=tuple(advice),
        latency_score=clamp_score(latency_score),
        jitter_score=clamp_score(jitter_score),
        packet_loss_score=clamp_score(loss_score),
    )


# ---------------------------------------------------------------------------
# Video calls
# ---------------------------------------------------------------------------

def evaluate_video_call(
    upload: ThroughputResult,
    latency: LatencyResult,
    quality: QualityResult,
) -> VideoCallResult:
    mbps = upload.throughput
    rtt = latency.latency
    stability = quality.stability_score

    upload_score = min(100.0, mbps / VIDEO_MIN_UPLOAD * 100)
    latency_score = max(0.0, 100 - rtt / VIDEO_LATENCY_SCALE * 100)
    overall = upload_score * 0.4 + latency_score * 0.3 + stability * 0.3

    suitable = mbps >= VIDEO_MIN_UPLOAD and rtt < VIDEO_MAX_LATENCY and stability >= STABLE_SCORE

    advice: List[str] = []
    if mbps < VIDEO_MIN_UPLOAD_SD:
        advice.append("Very low upload speed - video calls may not work well")
    elif mbps < VIDEO_MIN_UPLOAD:
        advice.append("Low upload speed - at least 1.5 Mbps is recommended for HD video calls")

    if rtt >= VIDEO_MAX_LATENCY:
        advice.append("High latency - expect delays in video calls")

    if stability < STABLE_SCORE:
        advice.append("Unstable connection - calls may drop out")

    if suitable:
        advice.append("Suitable for HD video calls")

    if suitable and mbps >= 2 and rtt < 50:
        message = "Excellent for video calls - high upload and low latency"
    elif suitable:
        message = "Suitable for video calls"
    else:
        message = "Not ideal for video calls - low upload or high latency"

    return VideoCallResult(
        scenario=SCENARIO_VIDEO_CALL,
        suitable=suitable,
        overall_score=clamp_score(overall),
        message=message,
        recommendations=tuple(advice),
        upload_score=clamp_score(upload_score),
        latency_score=clamp_score(latency_score),
        stability_score=clamp_score(stability),
    )
