from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


@dataclass(frozen=True)
class IntervalSeries:
    """Parallel beat times (cumulative seconds) and RR interval durations."""

    timestamps_s: tuple[float, ...] = ()
    intervals_s: tuple[float, ...] = ()

    @classmethod
    def from_arrays(cls, timestamps, intervals) -> "IntervalSeries":
        return cls(
            timestamps_s=tuple(float(v) for v in timestamps),
            intervals_s=tuple(float(v) for v in intervals),
        )

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        return (
            np.asarray(self.timestamps_s, dtype=float),
            np.asarray(self.intervals_s, dtype=float),
        )

    def __len__(self) -> int:
        return len(self.intervals_s)


@dataclass(frozen=True)
class UniformSignal:
    fs: float
    t: np.ndarray
    y: np.ndarray

    @property
    def size(self) -> int:
        return int(self.y.size)


@dataclass(frozen=True)
class PsdSeries:
    frequency_hz: tuple[float, ...] = ()
    power: tuple[float, ...] = ()

    @classmethod
    def from_arrays(cls, frequency_hz, power) -> "PsdSeries":
        return cls(
            frequency_hz=tuple(float(v) for v in frequency_hz),
            power=tuple(float(v) for v in power),
        )

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        return (
            np.asarray(self.frequency_hz, dtype=float),
            np.asarray(self.power, dtype=float),
        )

    @property
    def is_empty(self) -> bool:
        return not self.frequency_hz


@dataclass(frozen=True)
class TimeDomainMetrics:
    mean_hr: float = 0.0
    mean_rr: float = 0.0
    rmssd: float = 0.0
    sdnn: float = 0.0
    pnn50: float = 0.0


@dataclass(frozen=True)
class FrequencyDomainMetrics:
    lf_power: float = 0.0
    hf_power: float = 0.0
    total_power: float = 0.0


@dataclass(frozen=True)
class CoherenceMetrics:
    coherence_score: float = 0.0
    peak_frequency_hz: float = 0.0
    peak_power: float = 0.0
    target_band_power: float = 0.0


@dataclass(frozen=True)
class AnalysisMetrics:
    mean_hr: float = 0.0
    mean_rr: float = 0.0
    rmssd: float = 0.0
    sdnn: float = 0.0
    pnn50: float = 0.0
    lf_power: float = 0.0
    hf_power: float = 0.0
    total_power: float = 0.0
    coherence_score: float = 0.0
    peak_frequency_hz: float = 0.0
    peak_power: float = 0.0
    target_band_power: float = 0.0

    @classmethod
    def combine(
        cls,
        time_domain: TimeDomainMetrics,
        frequency_domain: FrequencyDomainMetrics,
        coherence: CoherenceMetrics,
    ) -> "AnalysisMetrics":
        return cls(
            mean_hr=time_domain.mean_hr,
            mean_rr=time_domain.mean_rr,
            rmssd=time_domain.rmssd,
            sdnn=time_domain.sdnn,
            pnn50=time_domain.pnn50,
            lf_power=frequency_domain.lf_power,
            hf_power=frequency_domain.hf_power,
            total_power=frequency_domain.total_power,
            coherence_score=coherence.coherence_score,
            peak_frequency_hz=coherence.peak_frequency_hz,
            peak_power=coherence.peak_power,
            target_band_power=coherence.target_band_power,
        )


@dataclass(frozen=True)
class AnalysisResult:
    metrics: AnalysisMetrics
    psd: PsdSeries
    cleaned: IntervalSeries


@dataclass(frozen=True)
class CalibrationPoint:
    frequency_hz: float
    breaths_per_min: float
    score: float
    peak_frequency_hz: float
    peak_power: float

    @classmethod
    def empty(cls, frequency_hz: float) -> "CalibrationPoint":
        return cls(
            frequency_hz=frequency_hz,
            breaths_per_min=frequency_hz * 60,
            score=0.0,
            peak_frequency_hz=0.0,
            peak_power=0.0,
        )


@dataclass(frozen=True)
class CalibrationSummary:
    scanned: tuple[CalibrationPoint, ...] = ()
    best: CalibrationPoint | None = None


class SignalQualityLabel(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    NO_SIGNAL = "No Signal"
    SEARCHING = "Searching"


@dataclass(frozen=True)
class SignalQualityState:
    score: int = 0
    label: SignalQualityLabel = SignalQualityLabel.SEARCHING


@dataclass(frozen=True)
class RawEvent:
    timestamp_ms: int
    heart_rate: float | None = None
    intervals: tuple[float, ...] = field(default_factory=tuple)
