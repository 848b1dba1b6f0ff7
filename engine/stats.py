"""
Network measurement statistics.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass
class SampleStats:
    """Summary statistics computed from a list of samples."""

    samples: List[float] = field(default_factory=list)
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    variance: float = 0.0
    count: int = 0

    def calculate(self) -> None:
        if not self.samples:
            return
        self.count = len(self.samples)
        self.min = calculate_min(self.samples)
        self.max = calculate_max(self.samples)
        self.mean = calculate_mean(self.samples)
        self.median = calculate_median(self.samples)
        self.variance = calculate_variance(self.samples)

    def to_dict(self) -> dict:
        return {
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "mean": round(self.mean, 3),
            "median": round(self.median, 3),
            "variance": round(self.variance, 3),
            "count": self.count,
        }


def summarize(samples: Sequence[float]) -> SampleStats:
    """Build and calculate a ``SampleStats`` for *samples*."""
    result = SampleStats(samples=list(samples))
    result.calculate()
    return result


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_mean(samples: Sequence[float]) -> float:
    if not samples:
        return 0.0
    return statistics.fmean(samples)


def calculate_median(samples: Sequence[float]) -> float:
    """Middle value; average of the two central values for even counts."""
    if not samples:
        return 0.0
    return float(statistics.median(samples))


def calculate_min(samples: Sequence[float]) -> float:
    return float(min(samples)) if samples else 0.0


def calculate_max(samples: Sequence[float]) -> float:
    return float(max(samples)) if samples else 0.0


def calculate_variance(samples: Sequence[float]) -> float:
    """Population variance (mean squared deviation)."""
    if not samples:
        return 0.0
    return statistics.pvariance(samples)


def smooth_samples(samples: Sequence[float]) -> List[float]:
    """
    3-point centred moving average.

    The first and last values are passed through unchanged, so the output
    always has the same length as the input.
    """
    values = list(samples)
    if len(values) < 3:
        return values

    smoothed = [values[0]]
    for i in range(1, len(values) - 1):
        smoothed.append((values[i - 1] + values[i] + values[i + 1]) / 3)
    smoothed.append(values[-1])
    return smoothed


def coefficient_of_variation(variance: Optional[float], mean: float) -> float:
    """
    Standard deviation as a percentage of *mean*.

    Undefined for a non-positive mean or a missing variance; both yield 0.0
    so callers can treat the measurement as "no signal".
    """
    if variance is None or variance < 0 or mean <= 0:
        return 0.0
    return math.sqrt(variance) / mean * 100


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"
