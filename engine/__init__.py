"""SpeedFlux measurement engine -- protocol phases, statistics, and scoring."""

from .client import SpeedTestClient
from .download import DownloadSampler
from .errors import (
    AbnormalClosure,
    IdleTimeout,
    ProtocolViolation,
    SessionAborted,
    SessionBusy,
    SpeedtestError,
    TransportFailure,
)
from .latency import LatencyProber, LatencyResult
from .phase import PhaseState
from .protocol import ProgressEvent
from .quality import QualityResult, score_quality
from .scenarios import (
    GamingResult,
    ScenarioResult,
    StreamingResult,
    VideoCallResult,
    evaluate_gaming,
    evaluate_streaming,
    evaluate_video_call,
)
from .session import SessionReport, SessionState, SpeedTestSession, build_report
from .stats import (
    SampleStats,
    calculate_mean,
    calculate_median,
    calculate_variance,
    coefficient_of_variation,
    format_latency,
    format_speed,
    smooth_samples,
)
from .throughput import ThroughputResult
from .upload import UploadSampler

__all__ = [
    "AbnormalClosure",
    "DownloadSampler",
    "GamingResult",
    "IdleTimeout",
    "LatencyProber",
    "LatencyResult",
    "PhaseState",
    "ProgressEvent",
    "ProtocolViolation",
    "QualityResult",
    "SampleStats",
    "ScenarioResult",
    "SessionAborted",
    "SessionBusy",
    "SessionReport",
    "SessionState",
    "SpeedTestClient",
    "SpeedTestSession",
    "SpeedtestError",
    "StreamingResult",
    "ThroughputResult",
    "TransportFailure",
    "UploadSampler",
    "VideoCallResult",
    "build_report",
    "calculate_mean",
    "calculate_median",
    "calculate_variance",
    "coefficient_of_variation",
    "evaluate_gaming",
    "evaluate_streaming",
    "evaluate_video_call",
    "format_latency",
    "format_speed",
    "score_quality",
    "smooth_samples",
]
