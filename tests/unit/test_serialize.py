from __future__ import annotations

import json

import pytest

from hrv_coherence.models import CalibrationPoint, CalibrationSummary, RawEvent
from hrv_coherence.pipeline import analyze
from hrv_coherence.serialize.schemas import SignalQualityEvent
from hrv_coherence.serialize.writers import (
    dump_calibration,
    dump_result,
    dump_session,
    events_from_csv,
    events_to_csv,
    load_calibration,
    load_events,
    load_result,
    load_session,
    write_json,
)
from hrv_coherence.session import SessionMode, SessionRecorder, SessionSettings


def test_result_json_uses_camel_case(paced_rr) -> None:
    times, intervals = paced_rr(60.0, 0.1)
    payload = json.loads(dump_result(analyze(times, intervals, 0.1)))
    assert set(payload) == {"metrics", "psd", "cleaned"}
    assert {"meanHr", "coherenceScore", "peakFrequencyHz", "targetBandPower"} <= set(
        payload["metrics"]
    )
    assert set(payload["psd"]) == {"f", "p"}
    assert set(payload["cleaned"]) == {"rrTimes_s", "rr_s"}


def test_result_round_trip(paced_rr) -> None:
    times, intervals = paced_rr(60.0, 0.1)
    result = analyze(times, intervals, 0.1)
    assert load_result(dump_result(result)) == result


def test_session_round_trip() -> None:
    recorder = SessionRecorder(
        SessionMode.CALIBRATION,
        SessionSettings(target_hz=0.1, calibration_frequencies_hz=(0.08, 0.1)),
        started_at_ms=0,
    )
    recorder.add_event(RawEvent(timestamp_ms=10, heart_rate=70.0, intervals=(0.85, 0.86)))
    recorder.add_event(RawEvent(timestamp_ms=20, heart_rate=71.0))
    session = recorder.stop(ended_at_ms=5000)

    text = dump_session(session)
    payload = json.loads(text)
    assert payload["mode"] == "calibration"
    assert payload["rawEvents"][0] == {"t_ms": 10, "hr": 70.0, "rr_s": [0.85, 0.86]}
    assert payload["rawEvents"][1]["rr_s"] is None
    assert payload["settings"]["calibrationFrequenciesHz"] == [0.08, 0.1]
    assert load_session(text) == session


def test_events_csv_round_trip() -> None:
    events = [
        RawEvent(timestamp_ms=0, heart_rate=70.0, intervals=(0.85, 0.9)),
        RawEvent(timestamp_ms=1000, heart_rate=None, intervals=()),
    ]
    text = events_to_csv(events)
    assert text.splitlines()[0] == "t_ms,hr,rr_s"
    assert text.splitlines()[1] == "0,70,0.850000|0.900000"
    assert events_from_csv(text) == events


def test_events_csv_missing_columns() -> None:
    with pytest.raises(ValueError, match="rr_s"):
        events_from_csv("t_ms,hr\n0,70\n")


def test_load_events_from_session_json(tmp_path) -> None:
    path = write_json(
        {"rawEvents": [{"t_ms": 5, "hr": 60, "rr_s": [1.0]}, {"t_ms": 6}]},
        tmp_path / "session.json",
    )
    events = load_events(path)
    assert events == [
        RawEvent(timestamp_ms=5, heart_rate=60.0, intervals=(1.0,)),
        RawEvent(timestamp_ms=6),
    ]


def test_load_events_from_csv(tmp_path) -> None:
    path = tmp_path / "events.csv"
    path.write_text("t_ms,hr,rr_s\n0,,0.8|0.81\n", encoding="utf-8")
    assert load_events(path) == [RawEvent(timestamp_ms=0, intervals=(0.8, 0.81))]


def test_signal_quality_event_requires_payload() -> None:
    with pytest.raises(ValueError):
        SignalQualityEvent.model_validate({})
    assert SignalQualityEvent.model_validate({"hr": 62}).rr_s == []


def test_calibration_summary_json() -> None:
    best = CalibrationPoint(0.1, 6.0, 0.82, 0.1015625, 0.004)
    summary = CalibrationSummary(scanned=(CalibrationPoint.empty(0.09), best), best=best)
    text = dump_calibration(summary)
    payload = json.loads(text)
    assert payload["best"]["breathsPerMin"] == 6.0
    assert payload["scanned"][0]["score"] == 0.0
    assert load_calibration(text) == summary
    assert load_calibration(dump_calibration(CalibrationSummary())).best is None
