from __future__ import annotations

from hrv_coherence.api.error_payloads import error_payload, failure_classification
from hrv_coherence.errors import (
    AnalysisError,
    AnalysisTimeoutError,
    InputShapeError,
    from_failure_payload,
    to_failure_payload,
)


def test_failure_classification_transient_codes() -> None:
    assert failure_classification("analysis_timeout", "transient") == "TRANSIENT"
    assert failure_classification("worker_unavailable", "dependency") == "TRANSIENT"


def test_failure_classification_client_fatal() -> None:
    assert failure_classification("length_mismatch", "client") == "FATAL"


def test_error_payload_includes_failure_classification() -> None:
    payload = error_payload(
        code="analysis_timeout",
        message="timeout",
        classification="transient",
        extra={"timeout_seconds": 1.0},
    )
    assert payload["error"]["failure_classification"] == "TRANSIENT"
    assert payload["error"]["extra"] == {"timeout_seconds": 1.0}


def test_failure_payload_round_trip_keeps_type() -> None:
    error = from_failure_payload(to_failure_payload(InputShapeError(timestamps=3, intervals=2)))
    assert isinstance(error, InputShapeError)
    assert error.details == {"timestamps": 3, "intervals": 2}
    assert str(error) == "length_mismatch: length mismatch"


def test_failure_payload_for_plain_exception() -> None:
    payload = to_failure_payload(KeyError("rr"))
    assert payload["error_code"] == "computation_failed"
    assert payload["details"] == {"exception_type": "KeyError"}


def test_unknown_failure_code_stays_generic() -> None:
    error = from_failure_payload({"error_code": "mystery", "message": "?"})
    assert type(error) is AnalysisError
    assert not isinstance(error, AnalysisTimeoutError)
    assert error.code == "mystery"
