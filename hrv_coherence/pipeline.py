from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import numpy as np

from hrv_coherence.config import AnalysisConfig, DEFAULT_CONFIG
from hrv_coherence.errors import AnalysisError, ComputationFailure, InputShapeError
from hrv_coherence.models import AnalysisMetrics, AnalysisResult, FrequencyDomainMetrics
from hrv_coherence.processing.artifact import clean_rr_series
from hrv_coherence.processing.coherence import compute_coherence
from hrv_coherence.processing.spectral import integrate_band, resample_to_uniform, welch_psd
from hrv_coherence.processing.time_domain import compute_time_domain

logger = logging.getLogger(__name__)


def analyze(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    target_hz: float,
    config: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Run the full batch pipeline on one RR series.

    Raises ``InputShapeError`` before any work when the two sequences differ in
    length, and ``ComputationFailure`` for anything unexpected. Sparse input is
    not an error: it yields zero metrics and an empty PSD.
    """
    config = config or DEFAULT_CONFIG
    start = time.perf_counter()
    try:
        if len(rr_timestamps) != len(rr_intervals):
            raise InputShapeError(
                "rr timestamps and rr intervals lengths do not match",
                timestamps=len(rr_timestamps),
                intervals=len(rr_intervals),
            )
        result = _run(rr_timestamps, rr_intervals, float(target_hz), config)
    except AnalysisError:
        raise
    except Exception as exc:
        logger.exception("analysis_failed", extra={"target_hz": target_hz})
        raise ComputationFailure(
            str(exc) or "analysis failed",
            exception_type=exc.__class__.__name__,
        ) from exc

    logger.debug(
        "analysis_completed",
        extra={
            "input_beats": len(rr_intervals),
            "cleaned_beats": len(result.cleaned),
            "psd_bins": len(result.psd.frequency_hz),
            "duration_ms": round((time.perf_counter() - start) * 1000.0, 3),
        },
    )
    return result


def _run(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    target_hz: float,
    config: AnalysisConfig,
) -> AnalysisResult:
    # downstream metrics all use the artifact-filtered beats
    cleaned = clean_rr_series(rr_timestamps, rr_intervals, config.artifact)
    times, values = cleaned.as_arrays()
    time_domain = compute_time_domain(values)

    resampled = resample_to_uniform(times, values, config.spectral.resample_hz)
    psd = welch_psd(resampled.y, resampled.fs, config.spectral)
    coherence = compute_coherence(psd, target_hz, config.bands)

    bands = config.bands
    frequency_domain = FrequencyDomainMetrics(
        lf_power=integrate_band(psd, *bands.lf_hz),
        hf_power=integrate_band(psd, *bands.hf_hz),
        total_power=integrate_band(psd, *bands.total_hz),
    )
    return AnalysisResult(
        metrics=AnalysisMetrics.combine(time_domain, frequency_domain, coherence),
        psd=psd,
        cleaned=cleaned,
    )
