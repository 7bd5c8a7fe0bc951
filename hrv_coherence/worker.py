"""Background analysis worker.

The batch pipeline runs on a dedicated thread behind a request/response
channel: one request in, exactly one ``result`` or ``error`` message out.
Callers are serialized so a single request is in flight at a time; a caller
that gives up waiting gets ``AnalysisTimeoutError`` and the late response is
discarded when it eventually arrives.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from hrv_coherence.calibration import scan_calibration
from hrv_coherence.config import AnalysisConfig, DEFAULT_CONFIG
from hrv_coherence.core.metrics import ANALYSIS_DURATION, ANALYSIS_REQUESTS
from hrv_coherence.core.request_id import get_request_id, new_request_id, request_context
from hrv_coherence.errors import (
    AnalysisTimeoutError,
    WorkerUnavailableError,
    from_failure_payload,
    to_failure_payload,
)
from hrv_coherence.models import AnalysisResult, CalibrationSummary
from hrv_coherence.pipeline import analyze

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerRequest:
    type: Literal["analyze", "calibrate"]
    payload: dict[str, Any]
    request_id: str = field(default_factory=new_request_id)
    # id of the HTTP request or CLI run that issued this message
    origin_id: str = field(default_factory=get_request_id)


@dataclass(frozen=True)
class WorkerResponse:
    type: Literal["result", "error"]
    request_id: str
    payload: Any


_STOP = object()


class AnalysisWorker:
    def __init__(
        self,
        config: AnalysisConfig | None = None,
        timeout_seconds: float | None = 30.0,
        name: str = "analysis-worker",
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        self._timeout_seconds = timeout_seconds
        self._name = name
        self._requests: queue.Queue = queue.Queue()
        self._responses: queue.Queue = queue.Queue()
        self._channel_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info("analysis_worker_started", extra={"worker": self._name})

    def stop(self, timeout: float | None = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._requests.put(_STOP)
        thread.join(timeout)
        self._thread = None
        logger.info("analysis_worker_stopped", extra={"worker": self._name})

    def analyze(
        self,
        rr_timestamps: Sequence[float],
        rr_intervals: Sequence[float],
        target_hz: float,
        timeout: float | None = None,
    ) -> AnalysisResult:
        request = WorkerRequest(
            type="analyze",
            payload={
                "rr_timestamps": list(rr_timestamps),
                "rr_intervals": list(rr_intervals),
                "target_hz": float(target_hz),
            },
        )
        return self.request(request, timeout)

    def scan_calibration(
        self,
        rr_timestamps: Sequence[float],
        rr_intervals: Sequence[float],
        frequencies_hz: Sequence[float] | None = None,
        step_sec: float | None = None,
        timeout: float | None = None,
    ) -> CalibrationSummary:
        request = WorkerRequest(
            type="calibrate",
            payload={
                "rr_timestamps": list(rr_timestamps),
                "rr_intervals": list(rr_intervals),
                "frequencies_hz": None if frequencies_hz is None else list(frequencies_hz),
                "step_sec": step_sec,
            },
        )
        return self.request(request, timeout)

    def request(self, request: WorkerRequest, timeout: float | None = None) -> Any:
        if not self.is_alive:
            raise WorkerUnavailableError()
        if timeout is None:
            timeout = self._timeout_seconds
        with self._channel_lock:
            self._requests.put(request)
            response = self._await_response(request, timeout)
        if response.type == "error":
            raise from_failure_payload(response.payload)
        return response.payload

    def _await_response(self, request: WorkerRequest, timeout: float | None) -> WorkerResponse:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                response = self._responses.get(timeout=remaining)
            except queue.Empty:
                raise AnalysisTimeoutError(
                    request_id=request.request_id, timeout_seconds=timeout
                ) from None
            if response.request_id == request.request_id:
                return response
            logger.warning(
                "analysis_worker_stale_response",
                extra={"message_id": response.request_id},
            )

    def _run(self) -> None:
        while True:
            request = self._requests.get()
            if request is _STOP:
                return
            with request_context(request.origin_id or request.request_id):
                self._responses.put(self._handle(request))

    def _handle(self, request: WorkerRequest) -> WorkerResponse:
        start = time.perf_counter()
        try:
            if request.type == "analyze":
                payload: Any = analyze(
                    request.payload["rr_timestamps"],
                    request.payload["rr_intervals"],
                    request.payload["target_hz"],
                    config=self._config,
                )
            elif request.type == "calibrate":
                payload = scan_calibration(
                    request.payload["rr_timestamps"],
                    request.payload["rr_intervals"],
                    request.payload.get("frequencies_hz"),
                    request.payload.get("step_sec"),
                    config=self._config,
                )
            else:
                raise ValueError(f"Unknown worker message type: {request.type}")
        except Exception as exc:  # noqa: BLE001
            ANALYSIS_REQUESTS.labels(kind=request.type, outcome="error").inc()
            return WorkerResponse(
                type="error",
                request_id=request.request_id,
                payload=to_failure_payload(exc),
            )
        ANALYSIS_DURATION.labels(kind=request.type).observe(time.perf_counter() - start)
        ANALYSIS_REQUESTS.labels(kind=request.type, outcome="result").inc()
        return WorkerResponse(type="result", request_id=request.request_id, payload=payload)
