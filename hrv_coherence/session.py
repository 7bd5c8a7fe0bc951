"""Session recording and end-of-session report assembly.

Sessions are in-memory values; storage belongs to the caller.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from hrv_coherence.calibration import scan_calibration
from hrv_coherence.config import AnalysisConfig, DEFAULT_CONFIG
from hrv_coherence.models import AnalysisResult, CalibrationSummary, IntervalSeries, RawEvent
from hrv_coherence.pipeline import analyze

logger = logging.getLogger(__name__)

SESSION_VERSION = 1
INSUFFICIENT_DATA_MESSAGE = "not enough data for analysis"

Analyzer = Callable[[Sequence[float], Sequence[float], float], AnalysisResult]
Calibrator = Callable[[Sequence[float], Sequence[float]], CalibrationSummary]


class SessionMode(str, Enum):
    MEASUREMENT = "measurement"
    HRVB = "hrvb"
    CALIBRATION = "calibration"


class ReportStatus(str, Enum):
    COMPLETED = "completed"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class SessionSettings:
    target_hz: float
    inhale_ratio: float = 0.5
    measurement_duration_sec: float | None = None
    session_timer_enabled: bool = False
    session_timer_sec: float | None = None
    calibration_frequencies_hz: tuple[float, ...] | None = None
    calibration_step_sec: float | None = None


@dataclass(frozen=True)
class SessionDerived:
    analysis: AnalysisResult | None = None
    calibration: CalibrationSummary | None = None


@dataclass(frozen=True)
class Session:
    id: str
    started_at: str
    ended_at: str
    settings: SessionSettings
    raw_events: tuple[RawEvent, ...]
    derived: SessionDerived
    mode: SessionMode
    version: int = SESSION_VERSION


@dataclass(frozen=True)
class SessionReport:
    session: Session
    status: ReportStatus
    message: str | None = None


def extract_rr(events: Iterable[RawEvent]) -> IntervalSeries:
    """Flatten event intervals onto a cumulative beat-time axis.

    Interval values are durations, so each beat time is the running sum of
    the intervals before it, independent of event arrival times.
    """
    timestamps: list[float] = []
    intervals: list[float] = []
    elapsed = 0.0
    for event in events:
        for value in event.intervals:
            if not math.isfinite(value):
                continue
            elapsed += value
            timestamps.append(elapsed)
            intervals.append(float(value))
    return IntervalSeries(timestamps_s=tuple(timestamps), intervals_s=tuple(intervals))


def _now_ms() -> int:
    return int(time.time() * 1000)


def _to_iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc).isoformat()


class SessionRecorder:
    def __init__(
        self,
        mode: SessionMode,
        settings: SessionSettings,
        started_at_ms: int | None = None,
    ) -> None:
        self.mode = SessionMode(mode)
        self.settings = settings
        self.started_at_ms = _now_ms() if started_at_ms is None else int(started_at_ms)
        self.session_id = f"{self.mode.value}-{uuid.uuid4()}"
        self._events: list[RawEvent] = []

    @property
    def events(self) -> tuple[RawEvent, ...]:
        return tuple(self._events)

    def add_event(self, event: RawEvent) -> None:
        self._events.append(
            RawEvent(
                timestamp_ms=int(event.timestamp_ms),
                heart_rate=event.heart_rate,
                intervals=tuple(float(v) for v in event.intervals),
            )
        )

    def stop(self, derived: SessionDerived | None = None, ended_at_ms: int | None = None) -> Session:
        ended = _now_ms() if ended_at_ms is None else int(ended_at_ms)
        return Session(
            id=self.session_id,
            started_at=_to_iso(self.started_at_ms),
            ended_at=_to_iso(ended),
            settings=self.settings,
            raw_events=tuple(self._events),
            derived=derived or SessionDerived(),
            mode=self.mode,
        )


def finalize_session(
    recorder: SessionRecorder,
    analyzer: Analyzer | None = None,
    calibrator: Calibrator | None = None,
    config: AnalysisConfig | None = None,
    ended_at_ms: int | None = None,
) -> SessionReport:
    config = config or DEFAULT_CONFIG
    settings = recorder.settings
    frequencies = (
        settings.calibration_frequencies_hz
        if settings.calibration_frequencies_hz is not None
        else config.calibration.frequencies_hz
    )
    step_sec = (
        settings.calibration_step_sec
        if settings.calibration_step_sec is not None
        else config.calibration.step_sec
    )
    if analyzer is None:

        def analyzer(times, values, target_hz):
            return analyze(times, values, target_hz, config=config)

    if calibrator is None:

        def calibrator(times, values):
            return scan_calibration(times, values, frequencies, step_sec, config=config)

    if ended_at_ms is None:
        ended_at_ms = _now_ms()
    rr = extract_rr(recorder.events)
    if len(rr) < config.session_min_intervals:
        logger.info(
            "session_insufficient_data",
            extra={"session_id": recorder.session_id, "intervals": len(rr)},
        )
        return SessionReport(
            session=recorder.stop(SessionDerived(), ended_at_ms),
            status=ReportStatus.INSUFFICIENT_DATA,
            message=INSUFFICIENT_DATA_MESSAGE,
        )

    calibration: CalibrationSummary | None = None
    if recorder.mode is SessionMode.CALIBRATION:
        calibration = calibrator(rr.timestamps_s, rr.intervals_s)
        if calibration.best is not None:
            target_hz = calibration.best.frequency_hz
        elif frequencies:
            target_hz = frequencies[0]
        else:
            target_hz = settings.target_hz
    else:
        target_hz = settings.target_hz

    analysis = analyzer(rr.timestamps_s, rr.intervals_s, target_hz)
    logger.info(
        "session_finalized",
        extra={
            "session_id": recorder.session_id,
            "mode": recorder.mode.value,
            "intervals": len(rr),
            "target_hz": target_hz,
            "coherence_score": analysis.metrics.coherence_score,
        },
    )
    return SessionReport(
        session=recorder.stop(SessionDerived(analysis=analysis, calibration=calibration), ended_at_ms),
        status=ReportStatus.COMPLETED,
    )
