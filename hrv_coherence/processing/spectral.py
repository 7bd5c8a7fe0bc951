"""Uniform resampling, Welch PSD and band integration for RR series."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from scipy.signal import windows

from hrv_coherence.config import SpectralConfig
from hrv_coherence.models import PsdSeries, UniformSignal


def highest_power_of_two(value: int) -> int:
    if value < 1:
        return 0
    return 1 << (int(value).bit_length() - 1)


def resample_to_uniform(
    rr_timestamps: Sequence[float] | np.ndarray,
    rr_intervals: Sequence[float] | np.ndarray,
    fs: float = 4.0,
) -> UniformSignal:
    # linear interpolation onto a fixed grid from the first to the last beat
    times = np.asarray(rr_timestamps, dtype=float)
    values = np.asarray(rr_intervals, dtype=float)
    empty = UniformSignal(fs=fs, t=np.array([], dtype=float), y=np.array([], dtype=float))
    if times.size != values.size or values.size < 2:
        return empty

    t_start = float(times[0])
    t_end = float(times[-1])
    if t_end <= t_start:
        return empty

    dt = 1.0 / fs
    out_t: list[float] = []
    out_y: list[float] = []
    cursor = 0
    last = times.size - 2
    current = t_start
    while current <= t_end:
        while cursor < last and times[cursor + 1] < current:
            cursor += 1
        t0 = float(times[cursor])
        t1 = float(times[cursor + 1])
        span = t1 - t0
        if span > 0:
            y0 = float(values[cursor])
            y1 = float(values[cursor + 1])
            alpha = (current - t0) / span
            out_t.append(current)
            out_y.append(y0 + alpha * (y1 - y0))
        current += dt

    return UniformSignal(
        fs=fs,
        t=np.asarray(out_t, dtype=float),
        y=np.asarray(out_y, dtype=float),
    )


def welch_psd(
    signal: Sequence[float] | np.ndarray,
    fs: float,
    config: SpectralConfig | None = None,
) -> PsdSeries:
    """Single-sided Welch PSD with a symmetric Hann window and 50% overlap.

    The segment length is the largest power of two not above
    ``min(segment_length, len(signal))``; shorter than ``min_segment_length``
    yields an empty PSD. Each segment is mean-removed and transformed with
    the direct DFT (cosine and negative-sine correlations), so results match
    the textbook formula bin for bin.
    """
    config = config or SpectralConfig()
    data = np.asarray(signal, dtype=float)
    length = highest_power_of_two(min(config.segment_length, data.size))
    if length < config.min_segment_length:
        return PsdSeries()

    step = max(1, int(np.floor(length * (1 - config.overlap))))
    bins = length // 2 + 1
    window = windows.hann(length, sym=True)
    window_power = float(np.sum(window**2))

    angles = 2.0 * np.pi * np.outer(np.arange(bins), np.arange(length)) / length
    cos_basis = np.cos(angles)
    sin_basis = np.sin(angles)

    accumulated = np.zeros(bins, dtype=float)
    segment_count = 0
    for start in range(0, data.size - length + 1, step):
        segment = data[start : start + length]
        samples = (segment - np.mean(segment)) * window
        re = cos_basis @ samples
        im = -(sin_basis @ samples)
        accumulated += (re * re + im * im) / (fs * window_power)
        segment_count += 1

    if segment_count == 0:
        return PsdSeries()

    power = accumulated / segment_count
    power[1 : bins - 1] *= 2.0
    frequency = np.arange(bins, dtype=float) * fs / length
    return PsdSeries.from_arrays(frequency, power)


def integrate_band(psd: PsdSeries, low_hz: float, high_hz: float) -> float:
    """Trapezoidal area over every frequency pair that overlaps ``[low_hz, high_hz]``.

    Pairs straddling a band edge count in full; there is no partial-bin clipping.
    """
    freqs, power = psd.as_arrays()
    if freqs.size == 0 or freqs.size != power.size:
        return 0.0
    f0 = freqs[:-1]
    f1 = freqs[1:]
    dx = f1 - f0
    overlaps = ~((f1 < low_hz) | (f0 > high_hz)) & (dx > 0)
    area = (power[:-1][overlaps] + power[1:][overlaps]) / 2.0 * dx[overlaps]
    return float(np.sum(area))
