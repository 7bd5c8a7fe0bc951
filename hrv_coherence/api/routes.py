from __future__ import annotations

import anyio
from fastapi import APIRouter, Request, Response

from hrv_coherence.quality.monitor import SignalQualityMonitor
from hrv_coherence.serialize.schemas import (
    AnalysisResultSchema,
    AnalyzeRequest,
    CalibrationRequest,
    CalibrationSummarySchema,
    SessionReportRequest,
    SessionReportSchema,
    SignalQualityEvent,
    SignalQualitySchema,
)
from hrv_coherence.session import SessionRecorder, finalize_session
from hrv_coherence.worker import AnalysisWorker

router = APIRouter(tags=["analysis"])


def _worker(request: Request) -> AnalysisWorker:
    return request.app.state.analysis_worker


def _monitor(request: Request) -> SignalQualityMonitor:
    return request.app.state.quality_monitor


@router.post("/analyze", response_model=AnalysisResultSchema, response_model_by_alias=True)
async def analyze_series(payload: AnalyzeRequest, request: Request) -> AnalysisResultSchema:
    worker = _worker(request)
    result = await anyio.to_thread.run_sync(
        worker.analyze,
        payload.rr_timestamps,
        payload.rr_intervals,
        payload.target_hz,
    )
    return AnalysisResultSchema.from_result(result)


@router.post(
    "/calibration", response_model=CalibrationSummarySchema, response_model_by_alias=True
)
async def calibrate(payload: CalibrationRequest, request: Request) -> CalibrationSummarySchema:
    worker = _worker(request)
    summary = await anyio.to_thread.run_sync(
        worker.scan_calibration,
        payload.rr_timestamps,
        payload.rr_intervals,
        payload.frequencies_hz,
        payload.step_sec,
    )
    return CalibrationSummarySchema.from_summary(summary)


@router.post(
    "/sessions/report", response_model=SessionReportSchema, response_model_by_alias=True
)
async def session_report(
    payload: SessionReportRequest, request: Request
) -> SessionReportSchema:
    worker = _worker(request)
    recorder = SessionRecorder(
        payload.mode, payload.settings.to_settings(), started_at_ms=payload.started_at_ms
    )
    for event in payload.events:
        recorder.add_event(event.to_event())
    settings = recorder.settings

    def _calibrate(times, values):
        return worker.scan_calibration(
            times,
            values,
            settings.calibration_frequencies_hz,
            settings.calibration_step_sec,
        )

    def _finalize():
        return finalize_session(
            recorder,
            analyzer=worker.analyze,
            calibrator=_calibrate,
            config=request.app.state.analysis_config,
            ended_at_ms=payload.ended_at_ms,
        )

    report = await anyio.to_thread.run_sync(_finalize)
    return SessionReportSchema.from_report(report)


@router.post(
    "/signal-quality/events", response_model=SignalQualitySchema, response_model_by_alias=True
)
def push_signal_quality_event(
    payload: SignalQualityEvent, request: Request
) -> SignalQualitySchema:
    state = _monitor(request).push(payload.rr_s)
    return SignalQualitySchema.from_state(state)


@router.get("/signal-quality", response_model=SignalQualitySchema, response_model_by_alias=True)
def get_signal_quality(request: Request) -> SignalQualitySchema:
    return SignalQualitySchema.from_state(_monitor(request).state)


@router.delete("/signal-quality", status_code=204)
def clear_signal_quality(request: Request) -> Response:
    _monitor(request).clear()
    return Response(status_code=204)
