"""Artifact rejection for RR interval series.

Two passes run in order: a physiologic range gate, then a two-sided Hampel
filter that compares every beat against the median of its local neighbourhood.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from hrv_coherence.config import ArtifactConfig
from hrv_coherence.constants import MAD_SCALE
from hrv_coherence.errors import InputShapeError
from hrv_coherence.models import IntervalSeries
from hrv_coherence.processing.utils import mad


def range_filter(
    rr_timestamps: np.ndarray,
    rr_intervals: np.ndarray,
    config: ArtifactConfig,
) -> tuple[np.ndarray, np.ndarray]:
    finite = np.isfinite(rr_timestamps) & np.isfinite(rr_intervals)
    # NaN compares False, the finite mask keeps them out
    in_range = (rr_intervals >= config.min_rr_sec) & (rr_intervals <= config.max_rr_sec)
    keep = finite & in_range
    return rr_timestamps[keep], rr_intervals[keep]


def hampel_mask(values: np.ndarray, window_size: int, sigma: float) -> np.ndarray:
    """Return a keep-mask; a beat survives when it lies within ``sigma`` scaled MADs
    of its local median. A zero MAD cannot judge deviation, so the beat is kept."""
    n = values.size
    half_window = window_size // 2
    keep = np.ones(n, dtype=bool)
    for i in range(n):
        start = max(0, i - half_window)
        end = min(n - 1, i + half_window)
        local = values[start : end + 1]
        local_median = float(np.median(local))
        local_mad = mad(local)
        if local_mad == 0:
            continue
        threshold = sigma * MAD_SCALE * local_mad
        keep[i] = abs(float(values[i]) - local_median) <= threshold
    return keep


def clean_rr_series(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    config: ArtifactConfig | None = None,
) -> IntervalSeries:
    config = config or ArtifactConfig()
    times = np.asarray(rr_timestamps, dtype=float)
    values = np.asarray(rr_intervals, dtype=float)
    if times.shape != values.shape:
        raise InputShapeError(
            "rr timestamps and rr intervals lengths do not match",
            timestamps=int(times.size),
            intervals=int(values.size),
        )

    times, values = range_filter(times, values, config)
    if values.size < 3:
        return IntervalSeries.from_arrays(times, values)

    keep = hampel_mask(values, config.window_size, config.sigma)
    return IntervalSeries.from_arrays(times[keep], values[keep])
