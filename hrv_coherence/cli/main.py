from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from hrv_coherence.calibration import scan_calibration
from hrv_coherence.config import load_config
from hrv_coherence.constants import DEFAULT_TARGET_HZ
from hrv_coherence.core.logging import configure_logging
from hrv_coherence.core.request_id import request_context
from hrv_coherence.errors import AnalysisError
from hrv_coherence.pipeline import analyze
from hrv_coherence.serialize.writers import (
    dump_calibration,
    dump_report,
    dump_result,
    load_events,
    write_json,
)
from hrv_coherence.session import (
    SessionMode,
    SessionRecorder,
    SessionSettings,
    extract_rr,
    finalize_session,
)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input", required=True, help="Session JSON or CSV event export"
    )
    parser.add_argument("--output", default=None, help="Output JSON path (default stdout)")
    parser.add_argument("--config", default=None, help="Path to config YAML")
    parser.add_argument("--verbose", action="store_true", default=False)


def _frequency_list(value: str) -> list[float]:
    try:
        return [float(item) for item in value.split(",") if item.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid frequency list: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hrv-coherence")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Compute HRV and coherence metrics")
    _add_common(analyze_parser)
    analyze_parser.add_argument("--target-hz", type=float, default=DEFAULT_TARGET_HZ)

    calibrate_parser = subparsers.add_parser(
        "calibrate", help="Scan candidate breathing frequencies"
    )
    _add_common(calibrate_parser)
    calibrate_parser.add_argument(
        "--frequencies",
        type=_frequency_list,
        default=None,
        help="Comma separated candidate frequencies in Hz",
    )
    calibrate_parser.add_argument("--step-sec", type=float, default=None)

    report_parser = subparsers.add_parser("report", help="Finalize a recorded session")
    _add_common(report_parser)
    report_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SessionMode],
        default=SessionMode.MEASUREMENT.value,
    )
    report_parser.add_argument("--target-hz", type=float, default=DEFAULT_TARGET_HZ)

    return parser


def _emit(payload: str, output: str | None) -> None:
    if output is None:
        sys.stdout.write(payload + "\n")
        return
    write_json(payload, Path(output))


def run_analyze(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    rr = extract_rr(load_events(args.input))
    result = analyze(rr.timestamps_s, rr.intervals_s, args.target_hz, config=config)
    _emit(dump_result(result, indent=2), args.output)


def run_calibrate(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    rr = extract_rr(load_events(args.input))
    summary = scan_calibration(
        rr.timestamps_s,
        rr.intervals_s,
        args.frequencies,
        args.step_sec,
        config=config,
    )
    _emit(dump_calibration(summary, indent=2), args.output)


def run_report(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    events = load_events(args.input)
    started_at_ms = events[0].timestamp_ms if events else None
    ended_at_ms = events[-1].timestamp_ms if events else None
    recorder = SessionRecorder(
        SessionMode(args.mode),
        SessionSettings(target_hz=args.target_hz),
        started_at_ms=started_at_ms,
    )
    for event in events:
        recorder.add_event(event)
    report = finalize_session(recorder, config=config, ended_at_ms=ended_at_ms)
    _emit(dump_report(report), args.output)


COMMANDS = {
    "analyze": run_analyze,
    "calibrate": run_calibrate,
    "report": run_report,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("INFO" if args.verbose else "WARNING")
    try:
        with request_context(None):
            COMMANDS[args.command](args)
    except AnalysisError as exc:
        logging.getLogger("hrv_coherence.cli").error(
            "command_failed", extra={"code": exc.code, "detail": exc.message}
        )
        raise SystemExit(f"{exc.code}: {exc.message}") from exc


if __name__ == "__main__":
    main()
