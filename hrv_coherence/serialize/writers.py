from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from hrv_coherence.models import AnalysisResult, CalibrationSummary, RawEvent
from hrv_coherence.serialize.schemas import (
    AnalysisResultSchema,
    CalibrationSummarySchema,
    RawEventSchema,
    SessionReportSchema,
    SessionSchema,
)
from hrv_coherence.session import Session, SessionReport

CSV_HEADER = ("t_ms", "hr", "rr_s")
RR_SEPARATOR = "|"


def dump_result(result: AnalysisResult, indent: int | None = None) -> str:
    return AnalysisResultSchema.from_result(result).model_dump_json(by_alias=True, indent=indent)


def load_result(payload: str | bytes) -> AnalysisResult:
    return AnalysisResultSchema.model_validate_json(payload).to_result()


def dump_calibration(summary: CalibrationSummary, indent: int | None = None) -> str:
    schema = CalibrationSummarySchema.from_summary(summary)
    return schema.model_dump_json(by_alias=True, indent=indent)


def load_calibration(payload: str | bytes) -> CalibrationSummary:
    return CalibrationSummarySchema.model_validate_json(payload).to_summary()


def dump_session(session: Session, indent: int | None = 2) -> str:
    return SessionSchema.from_session(session).model_dump_json(by_alias=True, indent=indent)


def load_session(payload: str | bytes) -> Session:
    return SessionSchema.model_validate_json(payload).to_session()


def dump_report(report: SessionReport, indent: int | None = 2) -> str:
    return SessionReportSchema.from_report(report).model_dump_json(by_alias=True, indent=indent)


def events_to_csv(events: Iterable[RawEvent]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for event in events:
        rr_joined = RR_SEPARATOR.join(f"{value:.6f}" for value in event.intervals)
        hr = "" if event.heart_rate is None else _format_number(event.heart_rate)
        writer.writerow([event.timestamp_ms, hr, rr_joined])
    return buffer.getvalue()


def events_from_csv(text: str) -> list[RawEvent]:
    reader = csv.DictReader(io.StringIO(text))
    missing = [name for name in CSV_HEADER if name not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"CSV export is missing columns: {', '.join(missing)}")
    events: list[RawEvent] = []
    for row in reader:
        rr_field = (row.get("rr_s") or "").strip()
        hr_field = (row.get("hr") or "").strip()
        events.append(
            RawEvent(
                timestamp_ms=int(float(row["t_ms"])),
                heart_rate=float(hr_field) if hr_field else None,
                intervals=tuple(
                    float(value) for value in rr_field.split(RR_SEPARATOR) if value
                ),
            )
        )
    return events


def load_events(path: str | Path) -> list[RawEvent]:
    """Read raw sensor events from a session JSON file or a CSV export."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".csv":
        return events_from_csv(text)
    raw = json.loads(text)
    if isinstance(raw, dict):
        raw = raw.get("rawEvents", raw.get("events", []))
    return [RawEventSchema.model_validate(item).to_event() for item in raw]


def write_json(payload: str | dict[str, Any], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        if isinstance(payload, str):
            handle.write(payload)
        else:
            json.dump(payload, handle, indent=2)
        handle.write("\n")
    return path


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
