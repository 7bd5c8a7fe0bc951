from __future__ import annotations

MIN_RR_SEC = 0.3
MAX_RR_SEC = 2.0

HAMPEL_WINDOW_SIZE = 5
HAMPEL_SIGMA = 3.0
MAD_SCALE = 1.4826

RESAMPLE_HZ = 4.0
WELCH_SEGMENT_LENGTH = 256
WELCH_OVERLAP = 0.5
WELCH_MIN_SEGMENT_LENGTH = 16

LF_BAND_HZ = (0.04, 0.15)
HF_BAND_HZ = (0.15, 0.4)
TOTAL_BAND_HZ = (0.04, 0.4)
TARGET_HALF_BAND_HZ = 0.015
DEFAULT_TARGET_HZ = 0.1

CALIBRATION_FREQUENCIES_HZ = (0.07, 0.08, 0.09, 0.1, 0.11, 0.12)
CALIBRATION_STEP_SEC = 20.0
CALIBRATION_MIN_SAMPLES = 16

SESSION_MIN_INTERVALS = 16

QUALITY_WINDOW_SEC = 30.0
QUALITY_MIN_SAMPLES = 6
QUALITY_STALE_AFTER_SEC = 8.0
QUALITY_FRESHNESS_HORIZON_SEC = 5.0
QUALITY_CV_REFERENCE = 0.25
QUALITY_MAD_FALLBACK_SEC = 0.18
QUALITY_TICK_SEC = 1.0
QUALITY_WEIGHTS = {
    "valid": 0.45,
    "inlier": 0.20,
    "stability": 0.20,
    "freshness": 0.15,
}
QUALITY_LABEL_THRESHOLDS = {
    "excellent": 85,
    "good": 70,
    "fair": 50,
}
