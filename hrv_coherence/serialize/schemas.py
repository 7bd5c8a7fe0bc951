from __future__ import annotations

from dataclasses import asdict

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from hrv_coherence.models import (
    AnalysisMetrics,
    AnalysisResult,
    CalibrationPoint,
    CalibrationSummary,
    IntervalSeries,
    PsdSeries,
    RawEvent,
    SignalQualityLabel,
    SignalQualityState,
)
from hrv_coherence.session import (
    ReportStatus,
    Session,
    SessionDerived,
    SessionMode,
    SessionReport,
    SessionSettings,
)


class BaseSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class IntervalSeriesSchema(BaseSchema):
    rr_timestamps: list[float] = Field(default_factory=list, alias="rrTimes_s")
    rr_intervals: list[float] = Field(default_factory=list, alias="rr_s")

    @classmethod
    def from_series(cls, series: IntervalSeries) -> "IntervalSeriesSchema":
        return cls(
            rr_timestamps=list(series.timestamps_s),
            rr_intervals=list(series.intervals_s),
        )

    def to_series(self) -> IntervalSeries:
        return IntervalSeries.from_arrays(self.rr_timestamps, self.rr_intervals)


class PsdSchema(BaseSchema):
    f: list[float] = Field(default_factory=list)
    p: list[float] = Field(default_factory=list)

    @classmethod
    def from_psd(cls, psd: PsdSeries) -> "PsdSchema":
        return cls(f=list(psd.frequency_hz), p=list(psd.power))

    def to_psd(self) -> PsdSeries:
        return PsdSeries.from_arrays(self.f, self.p)


class AnalysisMetricsSchema(BaseSchema):
    mean_hr: float
    mean_rr: float
    rmssd: float
    sdnn: float
    pnn50: float
    lf_power: float
    hf_power: float
    total_power: float
    coherence_score: float
    peak_frequency_hz: float
    peak_power: float
    target_band_power: float

    def to_metrics(self) -> AnalysisMetrics:
        return AnalysisMetrics(**self.model_dump())


class AnalysisResultSchema(BaseSchema):
    metrics: AnalysisMetricsSchema
    psd: PsdSchema
    cleaned: IntervalSeriesSchema

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResultSchema":
        return cls(
            metrics=AnalysisMetricsSchema(**asdict(result.metrics)),
            psd=PsdSchema.from_psd(result.psd),
            cleaned=IntervalSeriesSchema.from_series(result.cleaned),
        )

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(
            metrics=self.metrics.to_metrics(),
            psd=self.psd.to_psd(),
            cleaned=self.cleaned.to_series(),
        )


class CalibrationPointSchema(BaseSchema):
    frequency_hz: float
    breaths_per_min: float
    score: float
    peak_frequency_hz: float
    peak_power: float

    def to_point(self) -> CalibrationPoint:
        return CalibrationPoint(**self.model_dump())


class CalibrationSummarySchema(BaseSchema):
    scanned: list[CalibrationPointSchema] = Field(default_factory=list)
    best: CalibrationPointSchema | None = None

    @classmethod
    def from_summary(cls, summary: CalibrationSummary) -> "CalibrationSummarySchema":
        return cls(
            scanned=[CalibrationPointSchema(**asdict(p)) for p in summary.scanned],
            best=(
                CalibrationPointSchema(**asdict(summary.best))
                if summary.best is not None
                else None
            ),
        )

    def to_summary(self) -> CalibrationSummary:
        return CalibrationSummary(
            scanned=tuple(p.to_point() for p in self.scanned),
            best=self.best.to_point() if self.best is not None else None,
        )


class SignalQualitySchema(BaseSchema):
    score: int = Field(ge=0, le=100)
    label: SignalQualityLabel

    @classmethod
    def from_state(cls, state: SignalQualityState) -> "SignalQualitySchema":
        return cls(score=state.score, label=state.label)


class RawEventSchema(BaseSchema):
    t_ms: int = Field(alias="t_ms")
    hr: float | None = Field(default=None, alias="hr")
    rr_s: list[float] | None = Field(default=None, alias="rr_s")

    @classmethod
    def from_event(cls, event: RawEvent) -> "RawEventSchema":
        return cls(
            t_ms=event.timestamp_ms,
            hr=event.heart_rate,
            rr_s=list(event.intervals) if event.intervals else None,
        )

    def to_event(self) -> RawEvent:
        return RawEvent(
            timestamp_ms=self.t_ms,
            heart_rate=self.hr,
            intervals=tuple(self.rr_s or ()),
        )


class SessionSettingsSchema(BaseSchema):
    target_hz: float = Field(gt=0)
    inhale_ratio: float = Field(default=0.5, gt=0, lt=1)
    measurement_duration_sec: float | None = None
    session_timer_enabled: bool = False
    session_timer_sec: float | None = None
    calibration_frequencies_hz: list[float] | None = None
    calibration_step_sec: float | None = Field(default=None, gt=0)

    def to_settings(self) -> SessionSettings:
        return SessionSettings(
            target_hz=self.target_hz,
            inhale_ratio=self.inhale_ratio,
            measurement_duration_sec=self.measurement_duration_sec,
            session_timer_enabled=self.session_timer_enabled,
            session_timer_sec=self.session_timer_sec,
            calibration_frequencies_hz=(
                tuple(self.calibration_frequencies_hz)
                if self.calibration_frequencies_hz is not None
                else None
            ),
            calibration_step_sec=self.calibration_step_sec,
        )

    @classmethod
    def from_settings(cls, settings: SessionSettings) -> "SessionSettingsSchema":
        return cls(
            target_hz=settings.target_hz,
            inhale_ratio=settings.inhale_ratio,
            measurement_duration_sec=settings.measurement_duration_sec,
            session_timer_enabled=settings.session_timer_enabled,
            session_timer_sec=settings.session_timer_sec,
            calibration_frequencies_hz=(
                list(settings.calibration_frequencies_hz)
                if settings.calibration_frequencies_hz is not None
                else None
            ),
            calibration_step_sec=settings.calibration_step_sec,
        )


class SessionDerivedSchema(BaseSchema):
    analysis: AnalysisResultSchema | None = None
    calibration: CalibrationSummarySchema | None = None


class SessionSchema(BaseSchema):
    id: str
    started_at: str
    ended_at: str
    settings: SessionSettingsSchema
    raw_events: list[RawEventSchema] = Field(default_factory=list)
    derived: SessionDerivedSchema = Field(default_factory=SessionDerivedSchema)
    version: int = 1
    mode: SessionMode

    @classmethod
    def from_session(cls, session: Session) -> "SessionSchema":
        derived = session.derived
        return cls(
            id=session.id,
            started_at=session.started_at,
            ended_at=session.ended_at,
            settings=SessionSettingsSchema.from_settings(session.settings),
            raw_events=[RawEventSchema.from_event(e) for e in session.raw_events],
            derived=SessionDerivedSchema(
                analysis=(
                    AnalysisResultSchema.from_result(derived.analysis)
                    if derived.analysis is not None
                    else None
                ),
                calibration=(
                    CalibrationSummarySchema.from_summary(derived.calibration)
                    if derived.calibration is not None
                    else None
                ),
            ),
            version=session.version,
            mode=session.mode,
        )

    def to_session(self) -> Session:
        return Session(
            id=self.id,
            started_at=self.started_at,
            ended_at=self.ended_at,
            settings=self.settings.to_settings(),
            raw_events=tuple(e.to_event() for e in self.raw_events),
            derived=SessionDerived(
                analysis=self.derived.analysis.to_result() if self.derived.analysis else None,
                calibration=(
                    self.derived.calibration.to_summary() if self.derived.calibration else None
                ),
            ),
            mode=self.mode,
            version=self.version,
        )


class SessionReportSchema(BaseSchema):
    session: SessionSchema
    status: ReportStatus
    message: str | None = None

    @classmethod
    def from_report(cls, report: SessionReport) -> "SessionReportSchema":
        return cls(
            session=SessionSchema.from_session(report.session),
            status=report.status,
            message=report.message,
        )


class AnalyzeRequest(BaseSchema):
    rr_timestamps: list[float] = Field(alias="rrTimes_s")
    rr_intervals: list[float] = Field(alias="rr_s")
    target_hz: float


class CalibrationRequest(BaseSchema):
    rr_timestamps: list[float] = Field(alias="rrTimes_s")
    rr_intervals: list[float] = Field(alias="rr_s")
    frequencies_hz: list[float] | None = None
    step_sec: float | None = Field(default=None, gt=0)


class SessionReportRequest(BaseSchema):
    mode: SessionMode
    settings: SessionSettingsSchema
    started_at_ms: int | None = None
    ended_at_ms: int | None = None
    events: list[RawEventSchema] = Field(default_factory=list)


class SignalQualityEvent(BaseSchema):
    hr: float | None = Field(default=None, alias="hr")
    rr_s: list[float] = Field(default_factory=list, alias="rr_s")

    @model_validator(mode="after")
    def validate_payload(self) -> "SignalQualityEvent":
        if self.hr is None and not self.rr_s:
            raise ValueError("hr or rr_s is required")
        return self
