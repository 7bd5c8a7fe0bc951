from __future__ import annotations

from hrv_coherence.core.request_id import get_request_id


def failure_classification(code: str, classification: str) -> str:
    if classification in {"dependency", "transient"}:
        return "TRANSIENT"
    if code in {"analysis_timeout", "worker_unavailable"}:
        return "TRANSIENT"
    return "FATAL"


def error_payload(
    *,
    code: str,
    message: str,
    classification: str,
    extra: dict | None = None,
) -> dict:
    payload: dict[str, object] = {
        "code": code,
        "message": message,
        "classification": classification,
        "failure_classification": failure_classification(code, classification),
        "request_id": get_request_id(),
    }
    if extra:
        payload["extra"] = extra
    return {"error": payload}


ERROR_STATUS: dict[str, tuple[int, str]] = {
    "length_mismatch": (400, "client"),
    "computation_failed": (500, "server"),
    "analysis_timeout": (504, "transient"),
    "worker_unavailable": (503, "dependency"),
}
