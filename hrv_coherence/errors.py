from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AnalysisError(Exception):
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InputShapeError(AnalysisError):
    def __init__(self, message: str = "length mismatch", **details: Any) -> None:
        super().__init__(code="length_mismatch", message=message, details=details)


class ComputationFailure(AnalysisError):
    def __init__(self, message: str = "analysis failed", **details: Any) -> None:
        super().__init__(code="computation_failed", message=message, details=details)


class AnalysisTimeoutError(AnalysisError):
    def __init__(self, message: str = "analysis timed out", **details: Any) -> None:
        super().__init__(code="analysis_timeout", message=message, details=details)


class WorkerUnavailableError(AnalysisError):
    def __init__(self, message: str = "analysis worker is not running", **details: Any) -> None:
        super().__init__(code="worker_unavailable", message=message, details=details)


def to_failure_payload(exc: BaseException) -> dict[str, Any]:
    if isinstance(exc, AnalysisError):
        return {
            "error_code": exc.code,
            "message": exc.message,
            "details": exc.details,
        }
    return {
        "error_code": "computation_failed",
        "message": str(exc) or "analysis worker error",
        "details": {"exception_type": exc.__class__.__name__},
    }


_ERROR_TYPES: dict[str, type[AnalysisError]] = {
    "length_mismatch": InputShapeError,
    "computation_failed": ComputationFailure,
    "analysis_timeout": AnalysisTimeoutError,
    "worker_unavailable": WorkerUnavailableError,
}


def from_failure_payload(payload: dict[str, Any]) -> AnalysisError:
    code = str(payload.get("error_code", "computation_failed"))
    message = str(payload.get("message", "analysis worker error"))
    details = dict(payload.get("details") or {})
    error_type = _ERROR_TYPES.get(code)
    if error_type is None:
        return AnalysisError(code=code, message=message, details=details)
    return error_type(message, **details)
