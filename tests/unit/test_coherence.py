from __future__ import annotations

import numpy as np
import pytest

from hrv_coherence.models import PsdSeries
from hrv_coherence.processing.coherence import compute_coherence, find_peak
from hrv_coherence.processing.spectral import welch_psd


def _sinusoid_psd(frequency_hz: float) -> PsdSeries:
    fs = 4.0
    t = np.arange(1024) / fs
    return welch_psd(np.sin(2 * np.pi * frequency_hz * t), fs=fs)


def test_find_peak_first_maximum_wins() -> None:
    psd = PsdSeries.from_arrays([0.0, 0.05, 0.1, 0.15, 0.5], [9.0, 1.0, 3.0, 3.0, 10.0])
    assert find_peak(psd, 0.04, 0.4) == (0.1, 3.0)


def test_find_peak_empty_or_flat_band() -> None:
    assert find_peak(PsdSeries(), 0.04, 0.4) == (0.0, 0.0)
    flat = PsdSeries.from_arrays([0.05, 0.1], [0.0, 0.0])
    assert find_peak(flat, 0.04, 0.4) == (0.0, 0.0)


def test_coherence_high_at_breathing_frequency() -> None:
    coherence = compute_coherence(_sinusoid_psd(0.1), target_hz=0.1)
    assert 0.5 < coherence.coherence_score <= 1.0
    assert abs(coherence.peak_frequency_hz - 0.1) <= 4.0 / 256
    assert coherence.target_band_power > 0


def test_coherence_low_away_from_breathing_frequency() -> None:
    psd = _sinusoid_psd(0.1)
    on_target = compute_coherence(psd, target_hz=0.1)
    off_target = compute_coherence(psd, target_hz=0.3)
    assert off_target.coherence_score < 0.1
    assert off_target.peak_frequency_hz == on_target.peak_frequency_hz


def test_coherence_target_outside_total_band_scores_zero() -> None:
    coherence = compute_coherence(_sinusoid_psd(0.1), target_hz=1.0)
    assert coherence.coherence_score == 0.0
    assert coherence.target_band_power == 0.0


def test_coherence_zero_total_power() -> None:
    coherence = compute_coherence(PsdSeries(), target_hz=0.1)
    assert coherence.coherence_score == 0.0
    assert coherence.peak_frequency_hz == 0.0
    assert coherence.peak_power == pytest.approx(0.0)
