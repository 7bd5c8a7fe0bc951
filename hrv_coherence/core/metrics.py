from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNT = Counter(
    "hrv_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "hrv_http_request_latency_seconds",
    "HTTP request latency",
    ["path"],
)

ANALYSIS_REQUESTS = Counter(
    "hrv_analysis_requests_total",
    "Analysis requests handled by the worker",
    ["kind", "outcome"],
)

ANALYSIS_DURATION = Histogram(
    "hrv_analysis_duration_seconds",
    "Worker analysis duration",
    ["kind"],
)

SIGNAL_QUALITY_SCORE = Gauge(
    "hrv_signal_quality_score",
    "Latest live signal-quality score",
)

ERROR_COUNT = Counter(
    "hrv_error_total",
    "Structured error responses",
    ["code", "classification"],
)

CALIBRATION_SEGMENTS = Counter(
    "hrv_calibration_segments_total",
    "Calibration segments by outcome",
    ["outcome"],
)
