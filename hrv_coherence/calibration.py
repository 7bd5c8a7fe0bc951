"""Resonance-frequency calibration scan.

A calibration session paces breathing at each candidate frequency for a fixed
step. The recorded series is cut into one time segment per candidate and each
segment is scored by its coherence at that candidate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from hrv_coherence.config import AnalysisConfig, DEFAULT_CONFIG
from hrv_coherence.core.metrics import CALIBRATION_SEGMENTS
from hrv_coherence.errors import InputShapeError
from hrv_coherence.models import AnalysisResult, CalibrationPoint, CalibrationSummary
from hrv_coherence.pipeline import analyze

logger = logging.getLogger(__name__)

Analyzer = Callable[[Sequence[float], Sequence[float], float], AnalysisResult]


@dataclass(frozen=True)
class CalibrationSegment:
    frequency_hz: float
    rr_timestamps: tuple[float, ...]
    rr_intervals: tuple[float, ...]


def calibration_segments(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    frequencies_hz: Iterable[float],
    step_sec: float,
) -> list[CalibrationSegment]:
    # inclusive bounds: a beat exactly on a boundary lands in both neighbours
    times = np.asarray(rr_timestamps, dtype=float)
    values = np.asarray(rr_intervals, dtype=float)
    segments: list[CalibrationSegment] = []
    for index, frequency in enumerate(frequencies_hz):
        start = index * step_sec
        end = (index + 1) * step_sec
        mask = (times >= start) & (times <= end)
        segments.append(
            CalibrationSegment(
                frequency_hz=float(frequency),
                rr_timestamps=tuple(float(v) for v in times[mask]),
                rr_intervals=tuple(float(v) for v in values[mask]),
            )
        )
    return segments


def best_point(points: Iterable[CalibrationPoint]) -> CalibrationPoint | None:
    best: CalibrationPoint | None = None
    for point in points:
        if best is None or point.score > best.score:
            best = point
    return best


def scan_calibration(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    frequencies_hz: Sequence[float] | None = None,
    step_sec: float | None = None,
    analyzer: Analyzer | None = None,
    config: AnalysisConfig | None = None,
) -> CalibrationSummary:
    config = config or DEFAULT_CONFIG
    if len(rr_timestamps) != len(rr_intervals):
        raise InputShapeError(
            "rr timestamps and rr intervals lengths do not match",
            timestamps=len(rr_timestamps),
            intervals=len(rr_intervals),
        )
    if frequencies_hz is None:
        frequencies_hz = config.calibration.frequencies_hz
    if step_sec is None:
        step_sec = config.calibration.step_sec
    if analyzer is None:

        def analyzer(times, values, target_hz):
            return analyze(times, values, target_hz, config=config)

    scanned: list[CalibrationPoint] = []
    # one segment at a time, in candidate order
    for index, segment in enumerate(
        calibration_segments(rr_timestamps, rr_intervals, frequencies_hz, step_sec)
    ):
        if len(segment.rr_intervals) < config.calibration.min_samples:
            logger.info(
                "calibration_segment_skipped",
                extra={
                    "segment_index": index,
                    "frequency_hz": segment.frequency_hz,
                    "samples": len(segment.rr_intervals),
                },
            )
            CALIBRATION_SEGMENTS.labels(outcome="skipped").inc()
            scanned.append(CalibrationPoint.empty(segment.frequency_hz))
            continue

        result = analyzer(segment.rr_timestamps, segment.rr_intervals, segment.frequency_hz)
        CALIBRATION_SEGMENTS.labels(outcome="scored").inc()
        scanned.append(
            CalibrationPoint(
                frequency_hz=segment.frequency_hz,
                breaths_per_min=segment.frequency_hz * 60,
                score=result.metrics.coherence_score,
                peak_frequency_hz=result.metrics.peak_frequency_hz,
                peak_power=result.metrics.peak_power,
            )
        )

    summary = CalibrationSummary(scanned=tuple(scanned), best=best_point(scanned))
    if summary.best is not None:
        logger.info(
            "calibration_completed",
            extra={
                "segments": len(scanned),
                "best_frequency_hz": summary.best.frequency_hz,
                "best_score": summary.best.score,
            },
        )
    return summary
