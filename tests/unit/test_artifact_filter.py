from __future__ import annotations

import numpy as np
import pytest

from hrv_coherence.config import ArtifactConfig
from hrv_coherence.errors import InputShapeError
from hrv_coherence.processing.artifact import clean_rr_series, hampel_mask, range_filter


def _cumulative(values: list[float]) -> list[float]:
    return list(np.cumsum(values))


def test_range_filter_drops_out_of_range_and_non_finite() -> None:
    values = np.array([0.8, 0.25, 0.9, 2.5, np.nan, 0.82])
    times = np.arange(values.size, dtype=float)
    kept_times, kept_values = range_filter(times, values, ArtifactConfig())
    assert kept_values.tolist() == [0.8, 0.9, 0.82]
    assert kept_times.tolist() == [0.0, 2.0, 5.0]


def test_hampel_rejects_isolated_spike() -> None:
    values = [0.80, 0.82, 0.81, 0.83, 1.60, 0.82, 0.80, 0.81, 0.83]
    times = _cumulative(values)
    cleaned = clean_rr_series(times, values)
    assert len(cleaned) == 8
    assert 1.60 not in cleaned.intervals_s
    assert times[4] not in cleaned.timestamps_s


def test_hampel_keeps_beat_when_local_mad_is_zero() -> None:
    values = np.array([0.8, 0.8, 1.6, 0.8, 0.8])
    assert hampel_mask(values, window_size=5, sigma=3.0).all()


def test_clean_keeps_smooth_series_intact() -> None:
    values = [0.8, 0.9, 0.85, 0.82]
    cleaned = clean_rr_series(_cumulative(values), values)
    assert list(cleaned.intervals_s) == values


def test_clean_skips_hampel_below_three_beats() -> None:
    values = [0.8, 2.5, 0.9]
    cleaned = clean_rr_series(_cumulative(values), values)
    assert list(cleaned.intervals_s) == [0.8, 0.9]


def test_clean_empty_series() -> None:
    cleaned = clean_rr_series([], [])
    assert len(cleaned) == 0


def test_clean_rejects_length_mismatch() -> None:
    with pytest.raises(InputShapeError) as excinfo:
        clean_rr_series([1.0, 2.0], [0.8])
    assert excinfo.value.code == "length_mismatch"
    assert excinfo.value.details == {"timestamps": 2, "intervals": 1}


def test_clean_respects_configured_range() -> None:
    values = [0.5, 0.6, 0.7, 1.2]
    config = ArtifactConfig(min_rr_sec=0.55, max_rr_sec=1.0)
    cleaned = clean_rr_series(_cumulative(values), values, config)
    assert list(cleaned.intervals_s) == [0.6, 0.7]


def test_regular_series_passes_unchanged() -> None:
    values = [0.8, 0.8, 0.82, 0.78, 0.81]
    cleaned = clean_rr_series(_cumulative(values), values)
    assert list(cleaned.intervals_s) == values


def test_implausible_value_removed_by_range_gate() -> None:
    values = np.array([0.8, 0.8, 5.0, 0.8, 0.8, 0.8])
    times = np.cumsum(values)
    kept_times, kept_values = range_filter(times, values, ArtifactConfig())
    assert 5.0 not in kept_values
    assert hampel_mask(kept_values, window_size=5, sigma=3.0).all()
    assert list(clean_rr_series(times, values).intervals_s) == [0.8] * 5


def test_output_is_in_range_subsequence() -> None:
    rng = np.random.default_rng(7)
    values = rng.normal(0.85, 0.3, size=200)
    times = np.cumsum(np.abs(values))
    cleaned = clean_rr_series(times, values)
    kept = list(cleaned.timestamps_s)
    assert all(0.3 <= v <= 2.0 for v in cleaned.intervals_s)
    assert kept == sorted(kept)
    assert set(kept) <= set(times.tolist())
